"""
Comparative Rules for Pokal

Achievements that can only be decided by looking at the whole roster at
once (most medals, most wins, lowest spread, ...). Single-leader rules award
at most one participant: the first in roster order holding the best value,
and only when the rule's threshold holds.

Usage:
    engine = ComparativeRuleEngine(build_catalogue())
    awards = engine.evaluate(all_stats, competitions, participants)
"""

from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from pokal.achievements.catalogue import COMPARATIVE_RULES, AchievementCatalogue, Rule
from pokal.config import DECADE_WINDOW_YEARS
from pokal.models import Competition, Participant, ParticipantId, scored
from pokal.stats.aggregator import ParticipantStats, compute_head_to_head
from pokal.stats.rivalries import count_pair_wins
from pokal.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

# --- Configuration ---
GOAT_MIN_WINS = 5
MR_CONSISTENT_MIN_PARTICIPATIONS = 10
DECADE_CHAMPION_MIN_WINS = 3
CLOSER_COMPETITIONS = 3
FAMILY_RIVALRY_MIN_WINS = 5


@dataclass(frozen=True)
class ComparativeContext:
    participants: tuple[Participant, ...]
    all_stats: dict
    scored: tuple[Competition, ...]

    def stats(self, participant_id: ParticipantId) -> ParticipantStats:
        return self.all_stats[participant_id]


def find_leader(participants, metric: Callable[[ParticipantId], float], minimum: float = 1) -> ParticipantId | None:
    """
    First participant (roster order) with the highest metric.

    Returns None when the best value is below minimum.
    """
    leader, best = None, None
    for p in participants:
        value = metric(p.id)
        if best is None or value > best:
            leader, best = p.id, value
    if best is None or best < minimum:
        return None
    return leader


_registry: dict[Rule, Callable[[ComparativeContext], set]] = {}


def rule(member: Rule):
    """Register a roster-wide rule; it returns the set of ids that earn it."""
    def register(fn):
        _registry[member] = fn
        return fn
    return register


def _single(leader) -> set:
    return set() if leader is None else {leader}


@rule(Rule.MEDAL_HOARDER)
def medal_hoarder(ctx: ComparativeContext) -> set:
    return _single(find_leader(ctx.participants, lambda pid: ctx.stats(pid).total_medals))


@rule(Rule.GOAT)
def goat(ctx: ComparativeContext) -> set:
    return _single(find_leader(ctx.participants, lambda pid: ctx.stats(pid).gold, GOAT_MIN_WINS))


@rule(Rule.RECORD_BREAKER)
def record_breaker(ctx: ComparativeContext) -> set:
    return _single(find_leader(ctx.participants, lambda pid: ctx.stats(pid).gold))


@rule(Rule.ERA_DEFINER)
def era_definer(ctx: ComparativeContext) -> set:
    """Most wins, strictly ahead of everyone else."""
    leader = find_leader(ctx.participants, lambda pid: ctx.stats(pid).gold)
    if leader is None:
        return set()
    top = ctx.stats(leader).gold
    if any(ctx.stats(p.id).gold == top for p in ctx.participants if p.id != leader):
        return set()
    return {leader}


@rule(Rule.MR_CONSISTENT)
def mr_consistent(ctx: ComparativeContext) -> set:
    """Lowest standard deviation among participants with enough results."""
    eligible = [
        p for p in ctx.participants
        if ctx.stats(p.id).participations >= MR_CONSISTENT_MIN_PARTICIPATIONS
    ]
    if not eligible:
        return set()
    best = min(eligible, key=lambda p: ctx.stats(p.id).std_dev)
    return {best.id}


@rule(Rule.HOST_HERO)
def host_hero(ctx: ComparativeContext) -> set:
    return _single(find_leader(ctx.participants, lambda pid: ctx.stats(pid).arrangement_count))


@rule(Rule.DECADE_CHAMPION)
def decade_champion(ctx: ComparativeContext) -> set:
    """Most wins in the last ten calendar years up to the latest scored year."""
    if not ctx.scored:
        return set()
    first_year = ctx.scored[-1].year - DECADE_WINDOW_YEARS + 1

    def recent_wins(pid):
        return sum(1 for year in ctx.stats(pid).win_years if year >= first_year)

    return _single(find_leader(ctx.participants, recent_wins, DECADE_CHAMPION_MIN_WINS))


@rule(Rule.THE_CLOSER)
def the_closer(ctx: ComparativeContext) -> set:
    last = ctx.scored[-CLOSER_COMPETITIONS:]
    if len(last) < CLOSER_COMPETITIONS:
        return set()
    for p in ctx.participants:
        if all(c.rank_of(p.id) == 1 for c in last):
            return {p.id}
    return set()


@rule(Rule.RIVALRY_WINNER)
def rivalry_winner(ctx: ComparativeContext) -> set:
    """Most head-to-head wins summed over every opponent."""
    records = compute_head_to_head(ctx.participants, ctx.scored)
    totals = {pid: sum(r['wins'] for r in opponents.values()) for pid, opponents in records.items()}
    return _single(find_leader(ctx.participants, totals.__getitem__))


@rule(Rule.FAMILY_RIVALRY)
def family_rivalry(ctx: ComparativeContext) -> set:
    """Beat one fellow family member (same surname) at least five times."""
    families = defaultdict(list)
    for p in ctx.participants:
        families[p.surname].append(p)

    earned = set()
    for members in families.values():
        if len(members) < 2:
            continue
        for p1 in members:
            for p2 in members:
                if p1.id == p2.id:
                    continue
                if count_pair_wins(ctx.scored, p1.id, p2.id) >= FAMILY_RIVALRY_MIN_WINS:
                    earned.add(p1.id)
                    break
    return earned


# Read-only once every rule above is registered
COMPARATIVE_RULE_FUNCTIONS: Mapping[Rule, Callable[[ComparativeContext], set]] = MappingProxyType(_registry)


class ComparativeRuleEngine:
    """Evaluates every roster-wide rule of a catalogue."""

    def __init__(self, catalogue: AchievementCatalogue):
        self.catalogue = catalogue
        self._definitions = [d for d in catalogue if d.rule in COMPARATIVE_RULES]
        unknown = {d.rule for d in self._definitions if d.rule not in COMPARATIVE_RULE_FUNCTIONS}
        if unknown:
            raise ValueError(f"No comparative rule registered for: {sorted(r.value for r in unknown)}")

    def evaluate(
        self,
        all_stats: dict,
        competitions: Sequence[Competition],
        participants: Sequence[Participant],
    ) -> dict:
        """
        Award comparative achievements.

        Args:
            all_stats: participant_id -> ParticipantStats for every participant
            competitions: Every competition of the snapshot
            participants: Roster (order decides ties)

        Returns:
            dict participant_id -> frozenset of achievement ids (every
            participant present, possibly with an empty set)
        """
        ctx = ComparativeContext(
            participants=tuple(participants),
            all_stats=all_stats,
            scored=scored(competitions),
        )
        earned = {p.id: set() for p in ctx.participants}
        winners_by_rule: dict[Rule, set] = {}
        for definition in self._definitions:
            if definition.rule not in winners_by_rule:
                winners_by_rule[definition.rule] = COMPARATIVE_RULE_FUNCTIONS[definition.rule](ctx)
            for pid in winners_by_rule[definition.rule]:
                earned[pid].add(definition.id)

        logger.debug(f"Comparative rules awarded {sum(len(s) for s in earned.values())} achievements")
        return {pid: frozenset(ids) for pid, ids in earned.items()}
