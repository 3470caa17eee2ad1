"""
Tests for the per-participant achievement rules.
"""

import pytest

from pokal.achievements.catalogue import Rule, build_catalogue
from pokal.achievements.patterns import PATTERN_RULES, PatternRuleEngine, make_context
from pokal.models import Competition, Participant

PELLE = Participant("p", "Pelle Svensson")
ENGINE = PatternRuleEngine(build_catalogue())


def career(ranks, start=2000, field=12):
    """
    One competition per year from start; Pelle takes the given rank (None =
    absent) and filler participants o1..oN take every other rank.
    """
    competitions = []
    for i, rank in enumerate(ranks):
        size = max(field, rank or 0)
        scores = {f"o{r}": r for r in range(1, size + 1) if r != rank}
        if rank is not None:
            scores["p"] = rank
        competitions.append(Competition(f"c{i}", start + i, "Gokart", scores=scores))
    return competitions


def earned(ranks, **kwargs):
    return ENGINE.evaluate_context(make_context(PELLE, career(ranks, **kwargs)))


def holds(rule, ranks, **kwargs):
    return PATTERN_RULES[rule](make_context(PELLE, career(ranks, **kwargs)))


class TestPatternRuleEngine:
    """Tests for PatternRuleEngine wiring."""

    def test_no_data_earns_nothing(self):
        assert earned([None, None, None]) == frozenset()

    def test_no_competitions_earns_nothing(self):
        assert ENGINE.evaluate_context(make_context(PELLE, [])) == frozenset()

    def test_skips_comparative_rules(self):
        assert 'goat' not in earned([1] * 10)

    def test_shared_rule_awards_every_definition(self):
        awards = earned([12, 1])
        assert {'grass_to_grace', 'phoenix'} <= awards

    def test_evaluate_matches_context(self):
        from pokal.stats.aggregator import compute_stats
        from pokal.stats.trends import compute_trend

        comps = career([1, 2, 3])
        stats = compute_stats(PELLE, comps)
        trend = compute_trend(stats.ranks, stats.years)
        assert ENGINE.evaluate(PELLE, stats, trend, comps) == earned([1, 2, 3])


class TestMedalRules:
    """Tests for medal-count rules and their tiers."""

    def test_gold_king_at_exactly_five(self):
        awards = earned([1, 5, 1, 5, 1, 5, 1, 5, 1])
        assert 'gold_king' in awards
        assert 'gold_collector' not in awards

    def test_four_golds_is_collector_not_king(self):
        awards = earned([1, 5, 1, 5, 1, 5, 1])
        assert 'gold_king' not in awards
        assert 'gold_collector' in awards

    def test_gold_collector_at_exactly_three(self):
        assert 'gold_collector' in earned([1, 5, 1, 5, 1])
        assert 'gold_collector' not in earned([1, 5, 1])

    def test_first_win(self):
        assert 'first_win' in earned([4, 1])
        assert 'first_win' not in earned([2, 2])

    def test_rainbow(self):
        assert 'rainbow_medals' in earned([1, 2, 3])
        assert 'rainbow_medals' not in earned([1, 2, 4])

    def test_full_house_needs_three_years(self):
        assert holds(Rule.FULL_HOUSE, [1, 2, 3])
        assert not holds(Rule.FULL_HOUSE, [1, 2, 2])

    def test_bridesmaid(self):
        assert 'bridesmaid' in earned([2, 2, 2, 2, 2])
        assert 'bridesmaid' not in earned([2, 2, 2, 2, 2, 1])

    def test_runner_up_specialist(self):
        assert holds(Rule.RUNNER_UP_SPECIALIST, [2, 2, 2, 2])
        assert not holds(Rule.RUNNER_UP_SPECIALIST, [2, 2, 2])

    def test_rising_star(self):
        assert holds(Rule.RISING_STAR, [8, 5, 3])
        assert not holds(Rule.RISING_STAR, [8, 5, 4])

    def test_silver_streak(self):
        assert holds(Rule.SILVER_STREAK, [2, 2])
        assert not holds(Rule.SILVER_STREAK, [2, 5, 2])


class TestStreakRules:
    """Tests for streak and attendance rules."""

    def test_win_streak_three(self):
        awards = earned([1, 1, 1])
        assert 'win_streak_3' in awards
        assert 'win_streak_2' not in awards

    def test_win_streak_two(self):
        awards = earned([1, 1, 5, 1])
        assert 'win_streak_2' in awards
        assert 'win_streak_3' not in awards

    def test_absent_year_breaks_streak(self):
        assert 'win_streak_2' not in earned([1, None, 1])

    def test_podium_streak_tiers(self):
        assert 'podium_streak_3' in earned([3, 2, 3, 2])
        awards = earned([3, 2, 3, 2, 1])
        assert 'podium_streak_5' in awards
        assert 'podium_streak_3' not in awards

    def test_never_missed_and_perfect_attendance(self):
        awards = earned([5, 6, 7])
        assert {'never_missed', 'perfect_attendance'} <= awards
        assert 'never_missed' not in earned([5, None, 7])

    def test_never_missed_ignores_cancelled_year(self):
        comps = [
            Competition("c1", 2019, "Gokart", scores={"p": 3, "x": 1}),
            Competition("c2", 2020, "Gokart"),
            Competition("c3", 2021, "Gokart", scores={"p": 2, "x": 1}),
        ]
        assert PATTERN_RULES[Rule.NEVER_MISSED](make_context(PELLE, comps))

    def test_iron_competitor(self):
        assert holds(Rule.IRON_COMPETITOR, [6] * 10)
        assert not holds(Rule.IRON_COMPETITOR, [6] * 9 + [None] + [6] * 9)

    def test_comeback_kid_gap(self):
        assert holds(Rule.COMEBACK_KID, [1, 5, 5, 1])
        assert not holds(Rule.COMEBACK_KID, [1, 5, 1])

    def test_two_time_and_mythic_comeback(self):
        assert holds(Rule.TWO_TIME_CHAMPION, [1] + [5] * 4 + [1])
        assert not holds(Rule.MYTHIC_COMEBACK, [1] + [5] * 4 + [1])
        assert holds(Rule.MYTHIC_COMEBACK, [1] + [None] * 9 + [1])

    def test_losing_streak(self):
        assert holds(Rule.LOSING_STREAK, [4, 5, 6])
        assert not holds(Rule.LOSING_STREAK, [4, 3, 6])

    def test_consistent_competitor(self):
        assert holds(Rule.CONSISTENT_COMPETITOR, [10, 9, 8, 10, 10])
        assert not holds(Rule.CONSISTENT_COMPETITOR, [10, 9, 11, 10, 10])

    def test_comeback_top3(self):
        assert holds(Rule.COMEBACK_TOP3, [11, 3])
        assert not holds(Rule.COMEBACK_TOP3, [10, 3])

    def test_slow_burner(self):
        assert holds(Rule.SLOW_BURNER, [10, 8, 6, 4, 2])
        assert not holds(Rule.SLOW_BURNER, [10, 8, 6, 4])


class TestCareerRules:
    """Tests for career and special rules."""

    def test_veteran(self):
        assert 'veteran' in earned([8] * 10)
        assert 'veteran' not in earned([8] * 9)

    def test_participation_trophy(self):
        assert 'participation_trophy' in earned([8] * 10)
        assert 'participation_trophy' not in earned([8] * 9 + [3])

    def test_founding_father(self):
        assert holds(Rule.FOUNDING_FATHER, [7, None])
        assert not holds(Rule.FOUNDING_FATHER, [None, 7])

    def test_rookie_winner(self):
        assert holds(Rule.ROOKIE_WINNER, [5, 5, 1])
        assert not holds(Rule.ROOKIE_WINNER, [5, 5, 5, 1])

    def test_rookie_sensation(self):
        assert holds(Rule.ROOKIE_SENSATION, [5, 12])
        assert not holds(Rule.ROOKIE_SENSATION, [6, 1])

    def test_late_bloomer(self):
        assert holds(Rule.LATE_BLOOMER, [5, 6, 7, 8, 9, 3])
        assert not holds(Rule.LATE_BLOOMER, [5, 6, 7, 8, 3])

    def test_untouchable(self):
        assert holds(Rule.UNTOUCHABLE, [1, 2, 3, 1, 2])
        assert not holds(Rule.UNTOUCHABLE, [1, 2, 3, 1])
        assert not holds(Rule.UNTOUCHABLE, [1, 2, 3, 1, 4])

    def test_perfect_podium(self):
        assert holds(Rule.PERFECT_PODIUM, [3] * 8)
        assert not holds(Rule.PERFECT_PODIUM, [3] * 7)

    def test_immortal_champion(self):
        assert holds(Rule.IMMORTAL_CHAMPION, [1, 1, 1])
        assert not holds(Rule.IMMORTAL_CHAMPION, [1, 1])

    def test_dark_horse(self):
        assert holds(Rule.DARK_HORSE, [21, 2], field=25)
        assert not holds(Rule.DARK_HORSE, [20, 2], field=25)

    def test_tiebreaker(self):
        comps = [Competition("c1", 2020, "Gokart", scores={"p": 2, "x": 2, "y": 1})]
        assert PATTERN_RULES[Rule.TIEBREAKER](make_context(PELLE, comps))
        assert not holds(Rule.TIEBREAKER, [2])

    def test_timeless_wonder(self):
        assert holds(Rule.TIMELESS_WONDER, [10] * 15)
        assert not holds(Rule.TIMELESS_WONDER, [10] * 14)

    def test_pioneer(self):
        assert holds(Rule.PIONEER, [1] + [5] * 10)
        assert not holds(Rule.PIONEER, [1] + [5] * 9)

    def test_dynasty(self):
        assert holds(Rule.DYNASTY, [1, 1, 5, 1, 1, 1])
        assert not holds(Rule.DYNASTY, [1, 1, 5, 1, 1], start=2006)

    def test_triple_crown_of_decades(self):
        ranks = [1] + [None] * 5 + [1] + [None] * 5 + [1]
        assert holds(Rule.TRIPLE_CROWN, ranks, start=1999)
        assert not holds(Rule.TRIPLE_CROWN, [1, 1, 1], start=2000)

    def test_legacy_builder(self):
        ranks = [3] + [None] * 5 + [2] + [None] * 5 + [3]
        assert holds(Rule.LEGACY_BUILDER, ranks, start=1999)

    def test_arranger_rules(self):
        comps = [
            Competition("c1", 2020, "Gokart", scores={"p": 3, "x": 1}, arranger_3rd="p"),
            Competition("c2", 2021, "Gokart"),
            Competition("c3", 2022, "Gokart", scores={"p": 1, "x": 2}),
        ]
        ctx = make_context(PELLE, comps)
        assert PATTERN_RULES[Rule.ARRANGER_BRONZE](ctx)
        assert PATTERN_RULES[Rule.ARRANGER_REVENGE](ctx)

    def test_arranger_revenge_needs_win(self):
        comps = [
            Competition("c1", 2020, "Gokart", scores={"p": 3, "x": 1}, arranger_second_last="Pelle Svensson"),
            Competition("c2", 2021, "Gokart", scores={"p": 2, "x": 1}),
            Competition("c3", 2022, "Gokart", scores={"p": 1, "x": 2}),
        ]
        assert not PATTERN_RULES[Rule.ARRANGER_REVENGE](make_context(PELLE, comps))


class TestPositionalRules:
    """Tests for positional-pattern rules."""

    def test_odd_even(self):
        assert holds(Rule.ODD_EVEN, [1, 2, 3, 4], start=2001)
        assert not holds(Rule.ODD_EVEN, [2, 1, 4, 3], start=2001)

    def test_odd_even_needs_four_years(self):
        assert not holds(Rule.ODD_EVEN, [1, 2, 3], start=2001)

    def test_gatekeeper(self):
        assert holds(Rule.GATEKEEPER, [4, 5, 4, 5, 1])
        assert not holds(Rule.GATEKEEPER, [4, 5, 4, 5])
        assert not holds(Rule.GATEKEEPER, [4, 5, 1, 2, 3])

    def test_elevator(self):
        assert holds(Rule.ELEVATOR, [1, 10, 2])
        assert not holds(Rule.ELEVATOR, [1, 2, 3])
        assert not holds(Rule.ELEVATOR, [1, 10])

    def test_consistent_chaos(self):
        assert holds(Rule.CONSISTENT_CHAOS, [1, 2, 3, 4, 5])
        assert not holds(Rule.CONSISTENT_CHAOS, [1, 2, 3, 4, 4])
        assert not holds(Rule.CONSISTENT_CHAOS, [1, 2, 3, 4])

    def test_yo_yo(self):
        assert holds(Rule.YO_YO, [1, 5, 2, 6])
        assert not holds(Rule.YO_YO, [1, 5, 6, 2])
        assert not holds(Rule.YO_YO, [1, 5, 2])

    def test_mr_average(self):
        assert holds(Rule.MR_AVERAGE, [6, 7, 5])
        assert not holds(Rule.MR_AVERAGE, [6, 7, 1, 1, 1])

    @pytest.mark.parametrize("rule, rank", [(Rule.FOURTH_PLACE, 4), (Rule.LUCKY_SEVEN, 7)])
    def test_repeated_rank(self, rule, rank):
        assert holds(rule, [rank, 1, rank, rank])
        assert not holds(rule, [rank, 1, rank])

    def test_lucky_seven_anniversary(self):
        assert holds(Rule.LUCKY_SEVEN_ANNIVERSARY, [3] + [None] * 6 + [7])
        assert not holds(Rule.LUCKY_SEVEN_ANNIVERSARY, [3] + [None] * 5 + [7])

    def test_same_spot(self):
        assert holds(Rule.SAME_SPOT, [3, 3, 3])
        assert not holds(Rule.SAME_SPOT, [3, 3, None, 3])

    def test_edge_of_glory(self):
        assert holds(Rule.EDGE_OF_GLORY, [4, 4, 2])
        assert not holds(Rule.EDGE_OF_GLORY, [4, 2, 4])

    def test_grace_to_grass(self):
        assert 'grace_to_grass' in earned([1, 12])
        assert 'grace_to_grass' not in earned([1, 11])

    def test_grass_to_grace_uses_next_participation(self):
        assert holds(Rule.GRASS_TO_GRACE, [12, None, 1])
        assert not holds(Rule.GRASS_TO_GRACE, [12, 5, 1])

    def test_bounced_back(self):
        assert holds(Rule.BOUNCED_BACK, [12, 6])
        assert not holds(Rule.BOUNCED_BACK, [12, 2])

    def test_nemesis(self):
        assert holds(Rule.NEMESIS, [5, 5, 5, 5])
        assert not holds(Rule.NEMESIS, [5, 5, 5, 6])

    def test_sandwich(self):
        assert holds(Rule.SANDWICH, [5, 5, 5])
        assert not holds(Rule.SANDWICH, [5, 5, 6])

    def test_sandwich_needs_single_neighbours(self):
        comps = [
            Competition(f"c{y}", y, "Gokart", scores={"a": 2, "b": 2, "p": 3, "c": 4})
            for y in range(2000, 2003)
        ]
        assert not PATTERN_RULES[Rule.SANDWICH](make_context(PELLE, comps))
