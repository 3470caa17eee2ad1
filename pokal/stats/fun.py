"""
Fun Statistics for Pokal

Short headline facts for an overview page: the most consistent participant,
the biggest improver, the eternal runner-up, a competition-type specialist,
the biggest rivalry, the age of the competition and the most active
participant. Facts without a qualifying participant are left out.

Usage:
    from pokal.stats.fun import compute_fun_stats
    facts = compute_fun_stats(participants, competitions)
"""

from collections.abc import Sequence

from pokal.config import FUN_STATS_MIN_PARTICIPATIONS
from pokal.models import Competition, Participant
from pokal.stats.aggregator import compute_stats_for_all, find_specialists
from pokal.stats.rivalries import find_biggest_rivalry
from pokal.stats.trends import improvement_score

# --- Configuration ---
MIN_SILVERS_FOR_FACT = 2


def _fact(key, emoji, title, description, participant_id=None, value=None) -> dict:
    return {
        'key': key,
        'emoji': emoji,
        'title': title,
        'description': description,
        'participant_id': participant_id,
        'value': value,
    }


def _extreme(participants, values: dict, lowest: bool = False):
    """First participant in roster order holding the max (or min) value."""
    best = None
    for p in participants:
        if p.id not in values:
            continue
        value = values[p.id]
        if best is None or (value < best[1] if lowest else value > best[1]):
            best = (p, value)
    return best


def compute_fun_stats(participants: Sequence[Participant], competitions: Sequence[Competition]) -> list[dict]:
    """
    Compute the headline facts of a result history.

    Returns:
        List of dicts [key, emoji, title, description, participant_id, value]
        in display order
    """
    all_stats = compute_stats_for_all(participants, competitions)
    facts = []

    consistency = {
        pid: s.std_dev for pid, s in all_stats.items()
        if s.participations >= FUN_STATS_MIN_PARTICIPATIONS
    }
    most_consistent = _extreme(participants, consistency, lowest=True)
    if most_consistent:
        p, sigma = most_consistent
        facts.append(_fact('most_consistent', '🎯', 'Mr. Consistent',
                           f"{p.display_name} - most stable (σ={sigma:.1f})", p.id, sigma))

    improvements = {}
    for pid, s in all_stats.items():
        score = improvement_score(s.ranks)
        if score is not None:
            improvements[pid] = score
    improver = _extreme(participants, improvements)
    if improver and improver[1] > 0:
        p, gain = improver
        facts.append(_fact('biggest_improver', '📈', 'Most Improved',
                           f"{p.display_name} - {gain:.1f} places better", p.id, gain))

    silvers = _extreme(participants, {pid: s.silver for pid, s in all_stats.items()})
    if silvers and silvers[1] >= MIN_SILVERS_FOR_FACT:
        p, count = silvers
        facts.append(_fact('most_silvers', '🥈', 'Eternal Runner-up',
                           f"{p.display_name} - {count} silver medals", p.id, count))

    specialists = find_specialists(participants, competitions)
    if specialists:
        top = specialists[0]
        name = next(p.display_name for p in participants if p.id == top['participant_id'])
        facts.append(_fact('specialist', '🏅', f"{top['competition']} Specialist",
                           f"{name} - {top['wins']} wins", top['participant_id'], top['wins']))

    rivalry = find_biggest_rivalry(participants, competitions)
    if rivalry:
        names = {p.id: p.display_name for p in participants}
        facts.append(_fact('biggest_rivalry', '⚔️', 'Biggest Rivalry',
                           rivalry.describe(names), value=rivalry.meetings))

    years = [c.year for c in competitions]
    if years:
        first_year = min(years)
        age = max(years) - first_year + 1
        facts.append(_fact('competition_age', '📅', 'Age of the Competition',
                           f"{age} years since the first competition in {first_year}", value=age))

    active = _extreme(participants, {pid: s.participations for pid, s in all_stats.items() if s.participations})
    if active:
        p, count = active
        facts.append(_fact('most_active', '🏃', 'Most Active',
                           f"{p.display_name} - {count} competitions", p.id, count))

    return facts
