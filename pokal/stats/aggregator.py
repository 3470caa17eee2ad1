"""
Participant and Competition Aggregates for Pokal

This module derives scalar statistics from the result history:
- Per participant: ranks, medals, best/worst, mean, std-dev, rates
- Per competition: field size and competitiveness
- Across the roster: medal table, head-to-head records, win balance (Gini)
  and competition-type specialists

Usage:
    from pokal.stats.aggregator import compute_stats, compute_medal_table
"""

import math
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np
import pandas as pd

from pokal.models import Competition, Participant, ParticipantId, Placement, chronological, scored
from pokal.utils import mean, population_std, setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

# --- Configuration ---
MIN_RANKS_FOR_COMPETITIVENESS = 3  # Fewer ranks than this -> competitiveness 0
MIN_SPECIALIST_WINS = 2  # Wins in one competition type to count as specialist
MEDAL_TABLE_SORT = ['gold', 'silver', 'bronze', 'total']


@dataclass(frozen=True)
class ParticipantStats:
    """Derived statistics for one participant (recomputed every pass)."""
    participant_id: ParticipantId
    participations: int = 0
    ranks: tuple[int, ...] = ()
    years: tuple[int, ...] = ()
    year_ranks: Mapping[int, int] = field(default_factory=dict)
    placements: tuple[Placement, ...] = ()
    wins: int = 0
    podiums: int = 0
    top5: int = 0
    top10: int = 0
    best_rank: int | None = None
    worst_rank: int | None = None
    mean_rank: float = 0.0
    std_dev: float = 0.0
    gold: int = 0
    silver: int = 0
    bronze: int = 0
    arrangement_count: int = 0
    arranged_years: tuple[int, ...] = ()
    win_years: tuple[int, ...] = ()
    podium_years: tuple[int, ...] = ()
    participation_rate: float = 0.0
    win_rate: float = 0.0
    podium_rate: float = 0.0
    yearly: Mapping[int, Mapping] = field(default_factory=dict)
    by_type: Mapping[str, Mapping] = field(default_factory=dict)

    def __post_init__(self):
        # Cached and shared between passes, so every mapping is read-only
        object.__setattr__(self, "year_ranks", MappingProxyType(dict(self.year_ranks)))
        object.__setattr__(self, "yearly", _freeze_summaries(self.yearly))
        object.__setattr__(self, "by_type", _freeze_summaries(self.by_type))

    @property
    def total_medals(self) -> int:
        return self.gold + self.silver + self.bronze

    @property
    def has_data(self) -> bool:
        return self.participations > 0


def compute_stats(participant: Participant, competitions: Sequence[Competition]) -> ParticipantStats:
    """
    Compute statistics for one participant.

    Args:
        participant: The roster member
        competitions: Every competition of the snapshot (any order; cancelled
            years allowed)

    Returns:
        ParticipantStats. A participant without ranks gets mean/std-dev 0 and
        best/worst None; callers must treat that as "no data".
    """
    ranks, years, placements = [], [], []
    year_ranks = {}
    gold = silver = bronze = top5 = top10 = 0
    win_years, podium_years, arranged_years = [], [], []
    yearly = defaultdict(lambda: {'competitions': 0, 'wins': 0, 'podiums': 0, 'ranks': []})
    by_type = defaultdict(lambda: {'competitions': 0, 'wins': 0, 'ranks': []})

    ordered = chronological(competitions)
    for comp in ordered:
        if comp.arranged_by(participant):
            arranged_years.append(comp.year)

        rank = comp.rank_of(participant.id)
        if rank is None:
            continue

        ranks.append(rank)
        years.append(comp.year)
        year_ranks[comp.year] = rank
        placements.append(Placement(
            year=comp.year,
            competition_id=comp.id,
            competition=comp.name,
            rank=rank,
            field_size=comp.field_size,
            last_rank=comp.last_rank,
        ))

        if rank == 1:
            gold += 1
            win_years.append(comp.year)
        elif rank == 2:
            silver += 1
        elif rank == 3:
            bronze += 1
        if rank <= 3:
            podium_years.append(comp.year)
        if rank <= 5:
            top5 += 1
        if rank <= 10:
            top10 += 1

        year_summary = yearly[comp.year]
        year_summary['competitions'] += 1
        year_summary['wins'] += rank == 1
        year_summary['podiums'] += rank <= 3
        year_summary['ranks'].append(rank)

        type_summary = by_type[comp.name]
        type_summary['competitions'] += 1
        type_summary['wins'] += rank == 1
        type_summary['ranks'].append(rank)

    n = len(ranks)
    scored_count = sum(1 for c in ordered if c.is_scored)

    return ParticipantStats(
        participant_id=participant.id,
        participations=n,
        ranks=tuple(ranks),
        years=tuple(years),
        year_ranks=year_ranks,
        placements=tuple(placements),
        wins=gold,
        podiums=len(podium_years),
        top5=top5,
        top10=top10,
        best_rank=min(ranks) if ranks else None,
        worst_rank=max(ranks) if ranks else None,
        mean_rank=mean(ranks),
        std_dev=population_std(ranks),
        gold=gold,
        silver=silver,
        bronze=bronze,
        arrangement_count=len(arranged_years),
        arranged_years=tuple(arranged_years),
        win_years=tuple(win_years),
        podium_years=tuple(podium_years),
        participation_rate=n / scored_count if scored_count else 0.0,
        win_rate=gold / n if n else 0.0,
        podium_rate=len(podium_years) / n if n else 0.0,
        yearly={year: _summarize(s) for year, s in yearly.items()},
        by_type={name: _summarize(s) for name, s in by_type.items()},
    )


def _freeze_summaries(summaries: Mapping) -> Mapping:
    return MappingProxyType({key: MappingProxyType(dict(s)) for key, s in summaries.items()})


def _summarize(summary: dict) -> dict:
    ranks = summary.pop('ranks')
    summary['average_rank'] = mean(ranks)
    summary['best_rank'] = min(ranks)
    return summary


def compute_stats_for_all(participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
    """Compute ParticipantStats for every roster member, keyed by id (roster order)."""
    if not scored(competitions):
        logger.warning("No scored competitions found; every participant has no data")
    return {p.id: compute_stats(p, competitions) for p in participants}


def compute_medal_table(participants: Sequence[Participant], competitions: Sequence[Competition]) -> pd.DataFrame:
    """
    Build the medal leaderboard.

    Returns:
        DataFrame with columns [participant_id, name, gold, silver, bronze, total]
        sorted by gold, silver, bronze, total (all descending). Participants
        tied on all four keep their roster order.
    """
    rows = []
    for p in participants:
        gold = silver = bronze = 0
        for comp in competitions:
            rank = comp.rank_of(p.id)
            if rank == 1:
                gold += 1
            elif rank == 2:
                silver += 1
            elif rank == 3:
                bronze += 1
        rows.append({
            'participant_id': p.id,
            'name': p.display_name,
            'gold': gold,
            'silver': silver,
            'bronze': bronze,
            'total': gold + silver + bronze,
        })

    columns = ['participant_id', 'name', 'gold', 'silver', 'bronze', 'total']
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    return df.sort_values(
        MEDAL_TABLE_SORT, ascending=False, kind='stable'
    ).reset_index(drop=True)


def compute_competitiveness(scores) -> float:
    """
    How evenly spread the ranks of one competition are, as a percentage.

    100 means perfectly even, 0 very spread out. Fewer than three ranks
    yields 0.
    """
    ranks = list(scores.values())
    n = len(ranks)
    if n < MIN_RANKS_FOR_COMPETITIVENESS:
        return 0.0

    std_dev = population_std(ranks)
    max_std_dev = math.sqrt((n - 1) * n / 12)
    return max(0.0, (1 - std_dev / max_std_dev) * 100)


def compute_competition_stats(competition: Competition) -> dict:
    """Field size and competitiveness for one competition."""
    return {
        'competition_id': competition.id,
        'year': competition.year,
        'competition': competition.name,
        'participants': competition.field_size,
        'competitiveness': compute_competitiveness(competition.scores),
        'cancelled': not competition.is_scored,
    }


def compute_competition_difficulty(competitions: Sequence[Competition]) -> pd.DataFrame:
    """Per-competition stats for the whole history, one row per competition."""
    rows = [compute_competition_stats(c) for c in chronological(competitions)]
    columns = ['competition_id', 'year', 'competition', 'participants', 'competitiveness', 'cancelled']
    return pd.DataFrame(rows, columns=columns)


def gini_coefficient(values) -> float:
    """
    Gini coefficient of a list of non-negative counts.

    0 means perfectly equal, values toward 1 mean a few hold most of the total.
    """
    arr = np.sort(np.asarray(list(values), dtype=float))
    n = arr.size
    if n == 0:
        return 0.0
    total = arr.sum()
    if total == 0:
        return 0.0
    weights = 2 * np.arange(1, n + 1) - n - 1
    return float((weights * arr).sum() / (n * total))


def compute_win_balance(participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
    """
    Measure how evenly wins are spread among winners.

    Returns:
        dict with 'gini' (over participants with at least one win) and
        'dominance' (participant_id -> share of all wins in percent)
    """
    win_counts = defaultdict(int)
    for comp in competitions:
        for participant_id, rank in comp.scores.items():
            if rank == 1:
                win_counts[participant_id] += 1

    roster = [p.id for p in participants if win_counts.get(p.id)]
    counts = [win_counts[pid] for pid in roster]
    total = sum(counts)
    return {
        'gini': gini_coefficient(counts),
        'dominance': {pid: win_counts[pid] / total * 100 for pid in roster} if total else {},
    }


def compute_head_to_head(participants: Sequence[Participant], competitions: Sequence[Competition]) -> dict:
    """
    Wins, losses and ties between every ordered pair of participants.

    Returns:
        dict participant_id -> {other_id -> {'wins', 'losses', 'ties'}}
    """
    ids = [p.id for p in participants]
    records = {
        a: {b: {'wins': 0, 'losses': 0, 'ties': 0} for b in ids if b != a}
        for a in ids
    }

    for comp in competitions:
        ranked = [(pid, comp.scores[pid]) for pid in ids if pid in comp.scores]
        for i in range(len(ranked)):
            for j in range(i + 1, len(ranked)):
                a, rank_a = ranked[i]
                b, rank_b = ranked[j]
                if rank_a < rank_b:
                    records[a][b]['wins'] += 1
                    records[b][a]['losses'] += 1
                elif rank_b < rank_a:
                    records[b][a]['wins'] += 1
                    records[a][b]['losses'] += 1
                else:
                    records[a][b]['ties'] += 1
                    records[b][a]['ties'] += 1

    return records


def find_specialists(participants: Sequence[Participant], competitions: Sequence[Competition]) -> list[dict]:
    """
    Find competition-type specialists.

    For every competition type the participant with the most wins in it is a
    specialist when they have at least MIN_SPECIALIST_WINS wins there. Ties go
    to the first participant in roster order.

    Returns:
        List of dicts [competition, participant_id, wins] in order of first
        appearance of the competition type.
    """
    order = {p.id: i for i, p in enumerate(participants)}
    wins_by_type: dict[str, dict] = {}
    for comp in chronological(competitions):
        type_wins = wins_by_type.setdefault(comp.name, {})
        for participant_id, rank in comp.scores.items():
            if rank == 1 and participant_id in order:
                type_wins[participant_id] = type_wins.get(participant_id, 0) + 1

    specialists = []
    for name, type_wins in wins_by_type.items():
        if not type_wins:
            continue
        best_id = min(type_wins, key=lambda pid: (-type_wins[pid], order[pid]))
        if type_wins[best_id] >= MIN_SPECIALIST_WINS:
            specialists.append({
                'competition': name,
                'participant_id': best_id,
                'wins': type_wins[best_id],
            })
    return specialists
