"""
Pokal - Statistics and Achievement Engine

This package contains the core modules for:
- Result models and the content fingerprint (pokal.models)
- Participant, trend, rivalry and fun statistics (pokal.stats)
- The achievement catalogue, rule engines and scoring (pokal.achievements)
- The cached facade over all of the above (pokal.engine)
- Shared configuration and utilities
"""

from pokal.config import *
