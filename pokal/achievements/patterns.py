"""
Pattern Rules for Pokal

Per-participant achievement rules. Every rule is a pure predicate over a
RuleContext (the participant's stats, trend and the competition history) and
is registered against one member of the Rule enumeration. Thresholds are
exact cut-offs; rules that need a minimum number of results return False
when there are fewer.

Usage:
    engine = PatternRuleEngine(build_catalogue())
    earned = engine.evaluate(participant, stats, trend, competitions)
"""

import math
from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from pokal.achievements.catalogue import COMPARATIVE_RULES, AchievementCatalogue, Rule
from pokal.models import Competition, Participant, chronological, scored
from pokal.stats.aggregator import ParticipantStats, compute_stats
from pokal.stats.trends import Trend, compute_trend, longest_run
from pokal.utils import decade_of, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

# --- Configuration ---
ODD_EVEN_MIN_YEARS = 4
ODD_EVEN_MATCH_SHARE = 0.8
GATEKEEPER_MIN_RESULTS = 5
GATEKEEPER_SHARE = 0.6
ELEVATOR_MIN_RESULTS = 3
ELEVATOR_MIN_SWING = 5
ELEVATOR_SHARE = 0.5
CHAOS_MIN_RESULTS = 5
YO_YO_MIN_RESULTS = 4
MR_AVERAGE_MIN_COUNT = 3
MR_AVERAGE_SHARE = 0.6


@dataclass(frozen=True)
class RuleContext:
    """Everything a pattern rule may look at for one participant."""
    participant: Participant
    stats: ParticipantStats
    trend: Trend
    competitions: tuple[Competition, ...]  # chronological, cancelled included
    scored: tuple[Competition, ...]  # chronological, scored only

    @property
    def ranks(self) -> tuple[int, ...]:
        return self.stats.ranks

    def year_pairs(self):
        """(previous rank, next rank) for every two consecutive calendar years attended."""
        year_ranks = self.stats.year_ranks
        return [
            (year_ranks[year], year_ranks[year + 1])
            for year in sorted(year_ranks)
            if year + 1 in year_ranks
        ]

    def placement_pairs(self):
        """Consecutive placements in the participant's own sequence."""
        placements = self.stats.placements
        return list(zip(placements, placements[1:]))


def make_context(
    participant: Participant,
    competitions: Sequence[Competition],
    stats: ParticipantStats | None = None,
    trend: Trend | None = None,
) -> RuleContext:
    """Build a RuleContext, computing stats and trend when not supplied."""
    if stats is None:
        stats = compute_stats(participant, competitions)
    if trend is None:
        trend = compute_trend(stats.ranks, stats.years)
    return RuleContext(
        participant=participant,
        stats=stats,
        trend=trend,
        competitions=chronological(competitions),
        scored=scored(competitions),
    )


_registry: dict[Rule, Callable[[RuleContext], bool]] = {}


def rule(member: Rule):
    """Register a predicate for a Rule member."""
    def register(fn):
        _registry[member] = fn
        return fn
    return register


def _first_medal_index(ranks) -> int | None:
    for i, rank in enumerate(ranks):
        if rank <= 3:
            return i
    return None


def _win_gaps(win_years) -> list[int]:
    ordered = sorted(set(win_years))
    return [b - a for a, b in zip(ordered, ordered[1:])]


def _is_middle(rank: int, field_size: int) -> bool:
    return abs(rank - math.ceil(field_size / 2)) <= 1


def _holders(competition: Competition, rank: int) -> list:
    return [pid for pid, r in competition.scores.items() if r == rank]


# ===== MEDAL COUNTS =====

@rule(Rule.FIRST_WIN)
def first_win(ctx: RuleContext) -> bool:
    return ctx.stats.gold >= 1


@rule(Rule.GOLD_COLLECTOR)
def gold_collector(ctx: RuleContext) -> bool:
    return 3 <= ctx.stats.gold < 5


@rule(Rule.GOLD_KING)
def gold_king(ctx: RuleContext) -> bool:
    return ctx.stats.gold >= 5


@rule(Rule.TRIPLE_CROWN_MEDALS)
def triple_crown_medals(ctx: RuleContext) -> bool:
    return ctx.stats.gold >= 3


@rule(Rule.GRAND_MASTER)
def grand_master(ctx: RuleContext) -> bool:
    return ctx.stats.gold >= 7


@rule(Rule.SILVER_SPECIALIST)
def silver_specialist(ctx: RuleContext) -> bool:
    return ctx.stats.silver >= 3


@rule(Rule.BRONZE_COLLECTOR)
def bronze_collector(ctx: RuleContext) -> bool:
    return ctx.stats.bronze >= 3


@rule(Rule.MEDAL_MAGNET)
def medal_magnet(ctx: RuleContext) -> bool:
    return ctx.stats.total_medals >= 10


@rule(Rule.RAINBOW_MEDALS)
def rainbow_medals(ctx: RuleContext) -> bool:
    s = ctx.stats
    return s.gold > 0 and s.silver > 0 and s.bronze > 0


@rule(Rule.FULL_HOUSE)
def full_house(ctx: RuleContext) -> bool:
    """Gold, silver and bronze won in three different years."""
    by_medal = {1: set(), 2: set(), 3: set()}
    for p in ctx.stats.placements:
        if p.rank in by_medal:
            by_medal[p.rank].add(p.year)
    return any(
        g != s and g != b and s != b
        for g in by_medal[1]
        for s in by_medal[2]
        for b in by_medal[3]
    )


@rule(Rule.BRIDESMAID)
def bridesmaid(ctx: RuleContext) -> bool:
    return ctx.stats.silver >= 5 and ctx.stats.gold == 0


@rule(Rule.RUNNER_UP_SPECIALIST)
def runner_up_specialist(ctx: RuleContext) -> bool:
    return ctx.stats.silver >= 4 and ctx.stats.gold == 0


@rule(Rule.PODIUM_REGULAR)
def podium_regular(ctx: RuleContext) -> bool:
    return len(set(ctx.stats.podium_years)) >= 5


@rule(Rule.SILVER_STREAK)
def silver_streak(ctx: RuleContext) -> bool:
    return longest_run(ctx.stats.year_ranks, lambda r: r == 2) >= 2


@rule(Rule.RISING_STAR)
def rising_star(ctx: RuleContext) -> bool:
    """Three consecutive years, each better than the last, the third on the podium."""
    year_ranks = ctx.stats.year_ranks
    for year in year_ranks:
        if year + 1 in year_ranks and year + 2 in year_ranks:
            r0, r1, r2 = year_ranks[year], year_ranks[year + 1], year_ranks[year + 2]
            if r0 > r1 > r2 and r2 <= 3:
                return True
    return False


# ===== STREAKS AND ATTENDANCE =====

@rule(Rule.WIN_STREAK_3)
def win_streak_3(ctx: RuleContext) -> bool:
    return ctx.trend.max_win_streak >= 3


@rule(Rule.WIN_STREAK_2)
def win_streak_2(ctx: RuleContext) -> bool:
    # Tiered: a longer streak earns win_streak_3 instead
    return ctx.trend.max_win_streak == 2


@rule(Rule.FIRST_PLACE_FIVE)
def first_place_five(ctx: RuleContext) -> bool:
    return ctx.trend.max_win_streak >= 5


@rule(Rule.PODIUM_STREAK_5)
def podium_streak_5(ctx: RuleContext) -> bool:
    return ctx.trend.max_podium_streak >= 5


@rule(Rule.PODIUM_STREAK_3)
def podium_streak_3(ctx: RuleContext) -> bool:
    return 3 <= ctx.trend.max_podium_streak < 5


@rule(Rule.DECADE_OF_DOMINANCE)
def decade_of_dominance(ctx: RuleContext) -> bool:
    return ctx.trend.max_podium_streak >= 10


@rule(Rule.NEVER_MISSED)
def never_missed(ctx: RuleContext) -> bool:
    """Took part in every scored competition; cancelled years are ignored."""
    if not ctx.stats.has_data:
        return False
    pid = ctx.participant.id
    return all(c.rank_of(pid) is not None for c in ctx.scored)


@rule(Rule.IRON_COMPETITOR)
def iron_competitor(ctx: RuleContext) -> bool:
    """Ten scored competitions in a row; a cancelled year does not break the run."""
    pid = ctx.participant.id
    best = current = 0
    for comp in ctx.scored:
        if comp.rank_of(pid) is not None:
            current += 1
            best = max(best, current)
        else:
            current = 0
    return best >= 10


@rule(Rule.COMEBACK_KID)
def comeback_kid(ctx: RuleContext) -> bool:
    return any(gap >= 3 for gap in _win_gaps(ctx.stats.win_years))


@rule(Rule.TWO_TIME_CHAMPION)
def two_time_champion(ctx: RuleContext) -> bool:
    return any(gap >= 5 for gap in _win_gaps(ctx.stats.win_years))


@rule(Rule.MYTHIC_COMEBACK)
def mythic_comeback(ctx: RuleContext) -> bool:
    return any(gap >= 10 for gap in _win_gaps(ctx.stats.win_years))


@rule(Rule.LOSING_STREAK)
def losing_streak(ctx: RuleContext) -> bool:
    return longest_run(ctx.stats.year_ranks, lambda r: r > 3) >= 3


@rule(Rule.CONSISTENT_COMPETITOR)
def consistent_competitor(ctx: RuleContext) -> bool:
    return longest_run(ctx.stats.year_ranks, lambda r: r <= 10) >= 5


@rule(Rule.COMEBACK_TOP3)
def comeback_top3(ctx: RuleContext) -> bool:
    return any(prev > 10 and nxt <= 3 for prev, nxt in ctx.year_pairs())


@rule(Rule.SLOW_BURNER)
def slow_burner(ctx: RuleContext) -> bool:
    """Four year-over-year improvements in a row."""
    year_ranks = ctx.stats.year_ranks
    best = run = 0
    for year in sorted(year_ranks):
        if year - 1 in year_ranks and year_ranks[year] < year_ranks[year - 1]:
            run += 1
            best = max(best, run)
        else:
            run = 0
    return best >= 4


# ===== CAREER =====

@rule(Rule.VETERAN)
def veteran(ctx: RuleContext) -> bool:
    return ctx.stats.participations >= 10


@rule(Rule.FOUNDING_FATHER)
def founding_father(ctx: RuleContext) -> bool:
    if not ctx.scored:
        return False
    return ctx.scored[0].year in ctx.stats.year_ranks


@rule(Rule.ROOKIE_WINNER)
def rookie_winner(ctx: RuleContext) -> bool:
    return 1 in ctx.ranks[:3]


@rule(Rule.ROOKIE_SENSATION)
def rookie_sensation(ctx: RuleContext) -> bool:
    return bool(ctx.ranks) and ctx.ranks[0] <= 5


@rule(Rule.LATE_BLOOMER)
def late_bloomer(ctx: RuleContext) -> bool:
    first = _first_medal_index(ctx.ranks)
    return first is not None and first >= 5


@rule(Rule.PARTICIPATION_TROPHY)
def participation_trophy(ctx: RuleContext) -> bool:
    return ctx.stats.participations >= 10 and ctx.stats.total_medals == 0


@rule(Rule.ARRANGER_BRONZE)
def arranger_bronze(ctx: RuleContext) -> bool:
    return ctx.stats.arrangement_count >= 1


@rule(Rule.ARRANGER_REVENGE)
def arranger_revenge(ctx: RuleContext) -> bool:
    """Won the first scored competition after one they arranged."""
    pid = ctx.participant.id
    competitions = ctx.competitions
    for i, comp in enumerate(competitions):
        if not comp.arranged_by(ctx.participant):
            continue
        following = next((c for c in competitions[i + 1:] if c.is_scored), None)
        if following is not None and following.rank_of(pid) == 1:
            return True
    return False


@rule(Rule.UNTOUCHABLE)
def untouchable(ctx: RuleContext) -> bool:
    return ctx.stats.participations >= 5 and ctx.stats.worst_rank <= 3


@rule(Rule.PERFECT_PODIUM)
def perfect_podium(ctx: RuleContext) -> bool:
    return ctx.stats.participations >= 8 and ctx.stats.worst_rank <= 3


@rule(Rule.IMMORTAL_CHAMPION)
def immortal_champion(ctx: RuleContext) -> bool:
    return ctx.stats.participations >= 3 and ctx.stats.worst_rank == 1


@rule(Rule.DARK_HORSE)
def dark_horse(ctx: RuleContext) -> bool:
    return any(prev.rank > 20 and nxt.rank <= 3 for prev, nxt in ctx.placement_pairs())


@rule(Rule.TIEBREAKER)
def tiebreaker(ctx: RuleContext) -> bool:
    pid = ctx.participant.id
    for comp in ctx.scored:
        rank = comp.rank_of(pid)
        if rank is not None and len(_holders(comp, rank)) > 1:
            return True
    return False


@rule(Rule.TIMELESS_WONDER)
def timeless_wonder(ctx: RuleContext) -> bool:
    return len({p.year for p in ctx.stats.placements if p.rank <= 10}) >= 15


@rule(Rule.PIONEER)
def pioneer(ctx: RuleContext) -> bool:
    if not ctx.scored or not ctx.stats.has_data:
        return False
    first = ctx.scored[0]
    return first.rank_of(ctx.participant.id) == 1 and max(ctx.stats.years) >= first.year + 10


@rule(Rule.DYNASTY)
def dynasty(ctx: RuleContext) -> bool:
    per_decade = Counter(decade_of(year) for year in ctx.stats.win_years)
    return bool(per_decade) and max(per_decade.values()) >= 5


@rule(Rule.TRIPLE_CROWN)
def triple_crown(ctx: RuleContext) -> bool:
    return len({decade_of(year) for year in ctx.stats.win_years}) >= 3


@rule(Rule.LEGACY_BUILDER)
def legacy_builder(ctx: RuleContext) -> bool:
    return len({decade_of(year) for year in ctx.stats.podium_years}) >= 3


# ===== POSITIONAL PATTERNS =====

@rule(Rule.ODD_EVEN)
def odd_even(ctx: RuleContext) -> bool:
    """Year parity matches rank parity in at least 80% of the years attended."""
    year_ranks = ctx.stats.year_ranks
    if len(year_ranks) < ODD_EVEN_MIN_YEARS:
        return False
    matches = sum(1 for year, rank in year_ranks.items() if year % 2 == rank % 2)
    return matches >= len(year_ranks) * ODD_EVEN_MATCH_SHARE


@rule(Rule.GATEKEEPER)
def gatekeeper(ctx: RuleContext) -> bool:
    ranks = ctx.ranks
    if len(ranks) < GATEKEEPER_MIN_RESULTS:
        return False
    just_off = sum(1 for r in ranks if r in (4, 5))
    return just_off >= len(ranks) * GATEKEEPER_SHARE


@rule(Rule.ELEVATOR)
def elevator(ctx: RuleContext) -> bool:
    """A swing of 5+ places in at least half of the consecutive pairs."""
    ranks = ctx.ranks
    if len(ranks) < ELEVATOR_MIN_RESULTS:
        return False
    swings = sum(1 for a, b in zip(ranks, ranks[1:]) if abs(b - a) >= ELEVATOR_MIN_SWING)
    return swings >= (len(ranks) - 1) * ELEVATOR_SHARE


@rule(Rule.CONSISTENT_CHAOS)
def consistent_chaos(ctx: RuleContext) -> bool:
    ranks = ctx.ranks
    return len(ranks) >= CHAOS_MIN_RESULTS and len(set(ranks)) == len(ranks)


@rule(Rule.YO_YO)
def yo_yo(ctx: RuleContext) -> bool:
    ranks = ctx.ranks
    if len(ranks) < YO_YO_MIN_RESULTS:
        return False
    return all((a <= 3) != (b <= 3) for a, b in zip(ranks, ranks[1:]))


@rule(Rule.MR_AVERAGE)
def mr_average(ctx: RuleContext) -> bool:
    middle = sum(1 for p in ctx.stats.placements if _is_middle(p.rank, p.field_size))
    return middle >= MR_AVERAGE_MIN_COUNT and middle >= ctx.stats.participations * MR_AVERAGE_SHARE


@rule(Rule.FOURTH_PLACE)
def fourth_place(ctx: RuleContext) -> bool:
    return ctx.ranks.count(4) >= 3


@rule(Rule.LUCKY_SEVEN)
def lucky_seven(ctx: RuleContext) -> bool:
    return ctx.ranks.count(7) >= 3


@rule(Rule.LUCKY_SEVEN_ANNIVERSARY)
def lucky_seven_anniversary(ctx: RuleContext) -> bool:
    if not ctx.stats.has_data:
        return False
    debut = ctx.stats.years[0]
    return any(p.year == debut + 7 and p.rank == 7 for p in ctx.stats.placements)


@rule(Rule.SAME_SPOT)
def same_spot(ctx: RuleContext) -> bool:
    year_ranks = ctx.stats.year_ranks
    return any(
        year + 1 in year_ranks and year + 2 in year_ranks
        and year_ranks[year] == year_ranks[year + 1] == year_ranks[year + 2]
        for year in year_ranks
    )


@rule(Rule.EDGE_OF_GLORY)
def edge_of_glory(ctx: RuleContext) -> bool:
    first = _first_medal_index(ctx.ranks)
    return first is not None and ctx.ranks[:first].count(4) >= 2


@rule(Rule.GRACE_TO_GRASS)
def grace_to_grass(ctx: RuleContext) -> bool:
    """A win immediately followed by last place in the next competition attended."""
    return any(prev.rank == 1 and nxt.is_last for prev, nxt in ctx.placement_pairs())


@rule(Rule.GRASS_TO_GRACE)
def grass_to_grace(ctx: RuleContext) -> bool:
    return any(prev.is_last and nxt.rank == 1 for prev, nxt in ctx.placement_pairs())


@rule(Rule.BOUNCED_BACK)
def bounced_back(ctx: RuleContext) -> bool:
    return any(
        prev.is_last and nxt.field_size >= 3 and not nxt.is_last and _is_middle(nxt.rank, nxt.field_size)
        for prev, nxt in ctx.placement_pairs()
    )


@rule(Rule.NEMESIS)
def nemesis(ctx: RuleContext) -> bool:
    """Finished directly behind the same participant at least four times."""
    pid = ctx.participant.id
    behind = Counter()
    for comp in ctx.scored:
        rank = comp.rank_of(pid)
        if rank is None or rank == 1:
            continue
        for other in _holders(comp, rank - 1):
            if other != pid:
                behind[other] += 1
    return any(count >= 4 for count in behind.values())


@rule(Rule.SANDWICH)
def sandwich(ctx: RuleContext) -> bool:
    """Pinned between the same two participants (one directly above, one directly below) 3+ times."""
    pid = ctx.participant.id
    pinned = Counter()
    for comp in ctx.scored:
        rank = comp.rank_of(pid)
        if rank is None or rank == 1:
            continue
        above = _holders(comp, rank - 1)
        below = _holders(comp, rank + 1)
        if len(above) == 1 and len(below) == 1:
            pinned[(above[0], below[0])] += 1
    return any(count >= 3 for count in pinned.values())


# Read-only once every predicate above is registered
PATTERN_RULES: Mapping[Rule, Callable[[RuleContext], bool]] = MappingProxyType(_registry)


class PatternRuleEngine:
    """Evaluates every per-participant rule of a catalogue."""

    def __init__(self, catalogue: AchievementCatalogue):
        self.catalogue = catalogue
        self._definitions = [d for d in catalogue if d.rule not in COMPARATIVE_RULES]
        unknown = {d.rule for d in self._definitions if d.rule not in PATTERN_RULES}
        if unknown:
            raise ValueError(f"No pattern rule registered for: {sorted(r.value for r in unknown)}")

    def evaluate(
        self,
        participant: Participant,
        stats: ParticipantStats,
        trend: Trend,
        competitions: Sequence[Competition],
    ) -> frozenset[str]:
        """
        Achievement ids the participant has earned from their own history.

        Args:
            participant: The roster member
            stats: Their ParticipantStats
            trend: Their Trend
            competitions: Every competition of the snapshot

        Returns:
            frozenset of achievement ids
        """
        ctx = make_context(participant, competitions, stats=stats, trend=trend)
        return self.evaluate_context(ctx)

    def evaluate_context(self, ctx: RuleContext) -> frozenset[str]:
        results: dict[Rule, bool] = {}
        earned = set()
        for definition in self._definitions:
            if definition.rule not in results:
                results[definition.rule] = PATTERN_RULES[definition.rule](ctx)
            if results[definition.rule]:
                earned.add(definition.id)
        logger.debug(f"{ctx.participant.id!r}: {len(earned)} pattern achievements")
        return frozenset(earned)
