"""
Central configuration for the Pokal statistics engine.

All shared constants and configuration values should be defined here
to avoid duplication and ensure consistency across modules.
Rule thresholds live next to the rules that use them.
"""

# --- Cache Configuration ---
CACHE_TTL_SECONDS = 5 * 60  # Derived results are recomputed after five minutes

# --- Trend Configuration ---
TREND_SLOPE_THRESHOLD = 0.1  # |slope| above this counts as improving/declining
MIN_POINTS_FOR_TREND = 3  # Regression needs at least this many ranks
MIN_POINTS_FOR_IMPROVEMENT = 4  # First-half vs second-half comparison
RECENT_FORM_LENGTH = 5  # Ranks shown as "recent form"

# --- Comparative Configuration ---
DECADE_WINDOW_YEARS = 10  # Window used by the decade champion rule
FUN_STATS_MIN_PARTICIPATIONS = 3  # Minimum ranks for the consistency fun stat

# --- Achievement Catalogue ---
CATEGORIES = ("medals", "streaks", "special", "fun", "legendary", "mythic")
RARITIES = ("common", "rare", "epic", "legendary", "mythic")

# Rarity only affects scoring, never eligibility
RARITY_MULTIPLIERS = {
    "common": 1.0,
    "rare": 1.5,
    "epic": 2.0,
    "legendary": 3.0,
    "mythic": 5.0,
}

# Allowed participant statuses (for validation)
ALLOWED_STATUSES = frozenset({"active", "inactive", "retired"})
