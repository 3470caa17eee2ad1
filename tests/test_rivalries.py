"""
Tests for rivalry detection.
"""

from pokal.models import Competition, Participant
from pokal.stats.rivalries import (
    RIVALRY_COLUMNS,
    compute_rivalries,
    count_pair_wins,
    find_biggest_rivalry,
)

ALICE = Participant("a", "Alice Berg")
BOB = Participant("b", "Bob Lind")
CARL = Participant("c", "Carl Ek")


def alternating(years, first, second):
    """first and second swap 1st and 2nd place every year."""
    comps = []
    for i, year in enumerate(years):
        if i % 2 == 0:
            scores = {first: 1, second: 2}
        else:
            scores = {first: 2, second: 1}
        comps.append(Competition(f"c{year}", year, "Gokart", scores=scores))
    return comps


class TestComputeRivalries:
    """Tests for compute_rivalries function."""

    def test_close_pair_is_rivalry(self):
        df = compute_rivalries([ALICE, BOB], alternating(range(2010, 2015), "a", "b"))
        row = df.iloc[0]
        assert (row['player1'], row['player2']) == ("a", "b")
        assert row['meetings'] == 5
        assert (row['p1_wins'], row['p2_wins']) == (3, 2)
        assert bool(row['is_rivalry'])

    def test_too_few_meetings(self):
        df = compute_rivalries([ALICE, BOB], alternating(range(2010, 2014), "a", "b"))
        assert not bool(df.iloc[0]['is_rivalry'])

    def test_one_sided_pair_is_not_rivalry(self):
        comps = [Competition(f"c{y}", y, "Gokart", scores={"a": 1, "b": 2}) for y in range(2010, 2016)]
        df = compute_rivalries([ALICE, BOB], comps)
        assert df.iloc[0]['win_margin'] == 6
        assert not bool(df.iloc[0]['is_rivalry'])

    def test_pair_order_follows_roster(self):
        df = compute_rivalries([BOB, ALICE], alternating(range(2010, 2012), "a", "b"))
        assert (df.iloc[0]['player1'], df.iloc[0]['player2']) == ("b", "a")

    def test_ties_counted(self):
        comps = [Competition("c1", 2020, "Gokart", scores={"a": 1, "b": 1})]
        df = compute_rivalries([ALICE, BOB], comps)
        assert df.iloc[0]['ties'] == 1

    def test_no_results(self):
        df = compute_rivalries([ALICE, BOB], [Competition("c1", 2020, "Gokart")])
        assert df.empty
        assert list(df.columns) == RIVALRY_COLUMNS


class TestFindBiggestRivalry:
    """Tests for find_biggest_rivalry function."""

    def test_most_meetings_wins(self):
        comps = alternating(range(2010, 2016), "a", "b")
        comps += [
            Competition(f"x{y}", y, "Golf", scores={"c": y % 2 + 1, "b": 2 - y % 2})
            for y in range(2010, 2017)
        ]
        rivalry = find_biggest_rivalry([ALICE, BOB, CARL], comps)
        assert (rivalry.player1, rivalry.player2) == ("b", "c")
        assert rivalry.meetings == 7

    def test_first_found_on_tie(self):
        comps = alternating(range(2010, 2015), "a", "b") + [
            Competition(f"x{y}", y, "Golf", scores={"a": 2 - y % 2, "c": y % 2 + 1})
            for y in range(2010, 2015)
        ]
        rivalry = find_biggest_rivalry([ALICE, BOB, CARL], comps)
        assert (rivalry.player1, rivalry.player2) == ("a", "b")

    def test_none_when_nothing_qualifies(self):
        assert find_biggest_rivalry([ALICE, BOB], alternating(range(2010, 2012), "a", "b")) is None

    def test_describe(self):
        rivalry = find_biggest_rivalry([ALICE, BOB], alternating(range(2010, 2015), "a", "b"))
        assert rivalry.describe({"a": "Alice", "b": "Bob"}) == "Alice vs Bob (3-2)"


class TestCountPairWins:
    """Tests for count_pair_wins function."""

    def test_counts_only_shared_competitions(self):
        comps = alternating(range(2010, 2015), "a", "b") + [
            Competition("solo", 2016, "Gokart", scores={"a": 1}),
        ]
        assert count_pair_wins(comps, "a", "b") == 3
        assert count_pair_wins(comps, "b", "a") == 2
