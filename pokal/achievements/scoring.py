"""
Achievement Scoring

Points and completion statistics over awarded achievements. An achievement
is worth its base points times its rarity multiplier; ids missing from the
catalogue are worth nothing.

Usage:
    points = achievement_points(awards['p1'], catalogue)
    summary = compute_achievement_summary(awards, catalogue)
"""

from collections.abc import Iterable, Mapping

import pandas as pd

from pokal.achievements.catalogue import AchievementCatalogue
from pokal.config import CATEGORIES, RARITIES


def achievement_points(achievement_ids: Iterable[str], catalogue: AchievementCatalogue) -> float:
    """Sum of base points x rarity multiplier over known ids."""
    total = 0.0
    for achievement_id in achievement_ids:
        definition = catalogue.get(achievement_id)
        if definition is not None:
            total += definition.points
    return total


def _share(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def compute_achievement_summary(awards: Mapping, catalogue: AchievementCatalogue) -> dict:
    """
    Completion statistics for a set of awards.

    Args:
        awards: participant_id -> iterable of achievement ids
        catalogue: The catalogue the awards were computed from

    Returns:
        dict with:
        - total_possible: Number of catalogue entries
        - unlocked_count: Distinct achievements earned by anyone
        - completion_rate: unlocked_count as a percentage of total_possible
        - participants: participant_id -> {count, percentage, points}
        - categories / rarities: name -> {total, unlocked, percentage}
    """
    total_possible = len(catalogue)
    unlocked = set()
    participants = {}
    for participant_id, ids in awards.items():
        ids = set(ids)
        participants[participant_id] = {
            'count': len(ids),
            'percentage': _share(len(ids), total_possible),
            'points': achievement_points(ids, catalogue),
        }
        unlocked.update(i for i in ids if i in catalogue)

    def breakdown(definitions):
        members = [d.id for d in definitions]
        opened = sum(1 for i in members if i in unlocked)
        return {'total': len(members), 'unlocked': opened, 'percentage': _share(opened, len(members))}

    return {
        'total_possible': total_possible,
        'unlocked_count': len(unlocked),
        'completion_rate': _share(len(unlocked), total_possible),
        'participants': participants,
        'categories': {c: breakdown(catalogue.by_category(c)) for c in CATEGORIES},
        'rarities': {r: breakdown(catalogue.by_rarity(r)) for r in RARITIES},
    }


def points_table(awards: Mapping, catalogue: AchievementCatalogue, names: Mapping | None = None) -> pd.DataFrame:
    """
    Achievement points leaderboard.

    Returns:
        DataFrame with columns [participant_id, name, achievements, points]
        sorted by points (descending); equal points keep the awards' order.
    """
    names = names or {}
    rows = [
        {
            'participant_id': participant_id,
            'name': names.get(participant_id, participant_id),
            'achievements': len(set(ids)),
            'points': achievement_points(set(ids), catalogue),
        }
        for participant_id, ids in awards.items()
    ]
    df = pd.DataFrame(rows, columns=['participant_id', 'name', 'achievements', 'points'])
    if df.empty:
        return df
    return df.sort_values('points', ascending=False, kind='stable').reset_index(drop=True)
