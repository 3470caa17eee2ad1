"""
Pokal Achievement Engine

Facade over the statistics and achievement modules. Every derived result is
cached under the content fingerprint of the snapshot it was computed from,
so repeated calls with unchanged results are free and any change to the
results produces a new fingerprint (and a fresh computation).

The process:
1. Validate the snapshot (ResultSet) and fingerprint it
2. Compute ParticipantStats for every roster member
3. Compute a Trend from each participant's chronological ranks
4. Run the per-participant rules, then the roster-wide rules
5. Merge both award sets per participant

Usage:
    from pokal.engine import AchievementEngine
    engine = AchievementEngine()
    awards = engine.compute_achievements(participants, competitions)
    engine.invalidate()  # after editing results
"""

import time
from collections.abc import Sequence
from functools import lru_cache

from pokal.achievements.catalogue import AchievementCatalogue, AchievementDefinition, build_catalogue
from pokal.achievements.comparative import ComparativeRuleEngine
from pokal.achievements.patterns import PatternRuleEngine, make_context
from pokal.achievements.scoring import compute_achievement_summary, points_table
from pokal.cache import Fingerprint, ResultCache
from pokal.models import Competition, Participant, ResultSet
from pokal.stats.aggregator import compute_stats_for_all
from pokal.stats.fun import compute_fun_stats
from pokal.stats.trends import compute_trend
from pokal.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


@lru_cache(maxsize=1)
def default_catalogue() -> AchievementCatalogue:
    """The standard catalogue, built once per process."""
    return build_catalogue()


class AchievementEngine:
    """
    Computes statistics and achievements for result snapshots.

    Args:
        catalogue: Achievement catalogue (default: the standard catalogue)
        cache: ResultCache to memoize into (default: a private cache with the
            standard TTL)
    """

    def __init__(self, catalogue: AchievementCatalogue | None = None, cache: ResultCache | None = None):
        self.catalogue = catalogue if catalogue is not None else default_catalogue()
        self.cache = cache if cache is not None else ResultCache()
        self.pattern_rules = PatternRuleEngine(self.catalogue)
        self.comparative_rules = ComparativeRuleEngine(self.catalogue)

    def _cached(self, results: ResultSet, label: str, compute_fn):
        return self.cache.get_or_compute((results.fingerprint(), label), compute_fn)

    # --- Statistics ---

    def compute_all_stats(self, participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
        """participant_id -> ParticipantStats, in roster order."""
        results = ResultSet(participants, competitions)
        return dict(self._cached(results, 'stats', lambda: self._compute_stats(results)))

    def _compute_stats(self, results: ResultSet) -> dict:
        start = time.perf_counter()
        all_stats = compute_stats_for_all(results.participants, results.competitions)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"Computed stats for {len(all_stats)} participants in {elapsed:.1f} ms")
        return all_stats

    def compute_trends(self, participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
        """participant_id -> Trend, in roster order."""
        results = ResultSet(participants, competitions)
        return dict(self._cached(results, 'trends', lambda: self._compute_trends(results)))

    def _compute_trends(self, results: ResultSet) -> dict:
        all_stats = self.compute_all_stats(results.participants, results.competitions)
        return {pid: compute_trend(s.ranks, s.years) for pid, s in all_stats.items()}

    def compute_fun_stats(self, participants: Sequence[Participant], competitions: Sequence[Competition]) -> list:
        results = ResultSet(participants, competitions)
        facts = self._cached(
            results, 'fun', lambda: compute_fun_stats(results.participants, results.competitions)
        )
        return [dict(fact) for fact in facts]

    # --- Achievements ---

    def compute_achievements(self, participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
        """
        Award achievements to every participant.

        Returns:
            dict participant_id -> frozenset of achievement ids (roster order;
            participants without achievements map to an empty frozenset)
        """
        results = ResultSet(participants, competitions)
        return dict(self._cached(results, 'achievements', lambda: self._compute_achievements(results)))

    def _compute_achievements(self, results: ResultSet) -> dict:
        start = time.perf_counter()
        logger.info(
            f"Computing achievements for {len(results.participants)} participants, "
            f"{len(results.competitions)} competitions"
        )

        all_stats = self.compute_all_stats(results.participants, results.competitions)
        trends = self.compute_trends(results.participants, results.competitions)

        awards = {}
        for participant in results.participants:
            ctx = make_context(
                participant,
                results.competitions,
                stats=all_stats[participant.id],
                trend=trends[participant.id],
            )
            awards[participant.id] = self.pattern_rules.evaluate_context(ctx)

        comparative = self.comparative_rules.evaluate(all_stats, results.competitions, results.participants)
        for pid, earned in comparative.items():
            awards[pid] = awards[pid] | earned

        elapsed = (time.perf_counter() - start) * 1000
        total = sum(len(ids) for ids in awards.values())
        logger.info(f"Awarded {total} achievements in {elapsed:.1f} ms")
        return awards

    def compute_summary(self, participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
        """Completion statistics (see compute_achievement_summary) for the snapshot."""
        awards = self.compute_achievements(participants, competitions)
        return compute_achievement_summary(awards, self.catalogue)

    def compute_points_table(self, participants: Sequence[Participant], competitions: Sequence[Competition]):
        awards = self.compute_achievements(participants, competitions)
        names = {p.id: p.display_name for p in participants}
        return points_table(awards, self.catalogue, names)

    # --- Catalogue ---

    def get_catalogue(self) -> tuple[AchievementDefinition, ...]:
        return self.catalogue.definitions

    def lookup_achievement(self, achievement_id: str) -> AchievementDefinition | None:
        return self.catalogue.get(achievement_id)

    # --- Cache ---

    def invalidate(self, fingerprint: Fingerprint | None = None) -> int:
        """Drop cached results (all of them, or those of one snapshot)."""
        removed = self.cache.invalidate(fingerprint)
        logger.info(f"Cache invalidated ({removed} entries removed)")
        return removed


@lru_cache(maxsize=1)
def default_engine() -> AchievementEngine:
    """Process-wide engine used by the module-level functions."""
    return AchievementEngine()


def compute_all_stats(participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
    return default_engine().compute_all_stats(participants, competitions)


def compute_achievements(participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
    return default_engine().compute_achievements(participants, competitions)


def get_achievement_catalogue() -> tuple[AchievementDefinition, ...]:
    return default_catalogue().definitions


def lookup_achievement(achievement_id: str) -> AchievementDefinition | None:
    return default_catalogue().get(achievement_id)
