"""
Rivalry Statistics Computation for Pokal

This module computes head-to-head rivalry statistics from the result history.
A pair "meets" in every competition where both have a rank. A pair is a
rivalry when they met often and the head-to-head record stays close:
- at least MIN_MEETINGS meetings
- win margin (|p1 wins - p2 wins|) of at most MAX_WIN_MARGIN

The biggest rivalry is the qualifying pair with the most meetings.

Usage:
    from pokal.stats.rivalries import compute_rivalries, find_biggest_rivalry
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import combinations

import pandas as pd

from pokal.models import Competition, Participant, ParticipantId, results_frame
from pokal.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)

# --- Configuration ---
MIN_MEETINGS = 5  # Minimum shared competitions to qualify as a rivalry
MAX_WIN_MARGIN = 2  # Largest head-to-head win difference that is still "close"

RIVALRY_COLUMNS = [
    'player1', 'player2', 'meetings', 'p1_wins', 'p2_wins', 'ties',
    'p1_avg_rank', 'p2_avg_rank', 'win_margin', 'is_rivalry',
]


@dataclass(frozen=True)
class Rivalry:
    player1: ParticipantId
    player2: ParticipantId
    meetings: int
    p1_wins: int
    p2_wins: int

    def describe(self, names: dict) -> str:
        p1 = names.get(self.player1, self.player1)
        p2 = names.get(self.player2, self.player2)
        return f"{p1} vs {p2} ({self.p1_wins}-{self.p2_wins})"


def compute_rivalries(participants: Sequence[Participant], competitions: Sequence[Competition]) -> pd.DataFrame:
    """
    Compute head-to-head statistics for every pair that has met.

    Args:
        participants: Roster; pair order follows roster order
        competitions: Every competition (cancelled ones contribute nothing)

    Returns:
        DataFrame with one row per pair (player1 before player2 in roster
        order), pairs listed in roster order:
        - meetings: Competitions both took part in
        - p1_wins, p2_wins, ties: Head-to-head outcomes (lower rank wins)
        - p1_avg_rank, p2_avg_rank: Average rank when they met
        - win_margin: |p1_wins - p2_wins|
        - is_rivalry: meetings >= MIN_MEETINGS and win_margin <= MAX_WIN_MARGIN
    """
    order = {p.id: i for i, p in enumerate(participants)}
    df = results_frame(competitions)
    df = df[df['participant_id'].isin(list(order))]

    if df.empty:
        logger.debug("No ranked results found for rivalries")
        return pd.DataFrame(columns=RIVALRY_COLUMNS)

    # Group by competition and collect participants who took part
    games = {
        competition_id: dict(zip(group['participant_id'].tolist(), group['rank'].tolist()))
        for competition_id, group in df.groupby('competition_id', sort=False)
    }

    # Key: (player1, player2) where player1 comes first in the roster
    pair_stats: defaultdict[tuple, dict] = defaultdict(lambda: {
        'meetings': 0,
        'p1_wins': 0,
        'p2_wins': 0,
        'ties': 0,
        'p1_ranks': [],
        'p2_ranks': [],
    })

    for players_ranks in games.values():
        players = sorted(players_ranks, key=order.__getitem__)
        for p1, p2 in combinations(players, 2):
            rank1 = players_ranks[p1]
            rank2 = players_ranks[p2]

            stats = pair_stats[(p1, p2)]
            stats['meetings'] += 1
            stats['p1_ranks'].append(rank1)
            stats['p2_ranks'].append(rank2)

            # Lower rank = winner
            if rank1 < rank2:
                stats['p1_wins'] += 1
            elif rank2 < rank1:
                stats['p2_wins'] += 1
            else:
                stats['ties'] += 1

    rows = []
    for (p1, p2), stats in sorted(pair_stats.items(), key=lambda kv: (order[kv[0][0]], order[kv[0][1]])):
        margin = abs(stats['p1_wins'] - stats['p2_wins'])
        rows.append({
            'player1': p1,
            'player2': p2,
            'meetings': stats['meetings'],
            'p1_wins': stats['p1_wins'],
            'p2_wins': stats['p2_wins'],
            'ties': stats['ties'],
            'p1_avg_rank': round(sum(stats['p1_ranks']) / stats['meetings'], 2),
            'p2_avg_rank': round(sum(stats['p2_ranks']) / stats['meetings'], 2),
            'win_margin': margin,
            'is_rivalry': stats['meetings'] >= MIN_MEETINGS and margin <= MAX_WIN_MARGIN,
        })

    df_rivalries = pd.DataFrame(rows, columns=RIVALRY_COLUMNS)
    logger.debug(
        f"Found {len(df_rivalries)} pairs, {int(df_rivalries['is_rivalry'].sum())} qualifying rivalries"
    )
    return df_rivalries


def find_biggest_rivalry(participants: Sequence[Participant], competitions: Sequence[Competition]) -> Rivalry | None:
    """
    The qualifying rivalry with the most meetings.

    Pairs are scanned in roster order; on equal meeting counts the first
    pair found wins. Returns None when no pair qualifies.
    """
    df_rivalries = compute_rivalries(participants, competitions)
    if df_rivalries.empty:
        return None

    best = None
    for row in df_rivalries[df_rivalries['is_rivalry']].itertuples(index=False):
        if best is None or row.meetings > best.meetings:
            best = Rivalry(
                player1=row.player1,
                player2=row.player2,
                meetings=int(row.meetings),
                p1_wins=int(row.p1_wins),
                p2_wins=int(row.p2_wins),
            )
    return best


def count_pair_wins(competitions: Sequence[Competition], winner: ParticipantId, loser: ParticipantId) -> int:
    """Competitions in which winner ranked strictly better than loser."""
    wins = 0
    for comp in competitions:
        rank_w = comp.rank_of(winner)
        rank_l = comp.rank_of(loser)
        if rank_w is not None and rank_l is not None and rank_w < rank_l:
            wins += 1
    return wins
