"""
Achievement Catalogue

Static, immutable definitions of every achievement. Each definition is a
data record that names its rule from the closed Rule enumeration; the rule
engines map those members to predicate functions. Build the catalogue once
with build_catalogue() and pass it to the engines.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from pokal.config import CATEGORIES, RARITIES, RARITY_MULTIPLIERS


class Rule(str, Enum):
    """Every rule an achievement can be awarded by."""
    # Medal counts
    FIRST_WIN = "first_win"
    GOLD_COLLECTOR = "gold_collector"
    GOLD_KING = "gold_king"
    MEDAL_MAGNET = "medal_magnet"
    RAINBOW_MEDALS = "rainbow_medals"
    SILVER_SPECIALIST = "silver_specialist"
    BRONZE_COLLECTOR = "bronze_collector"
    FULL_HOUSE = "full_house"
    TRIPLE_CROWN_MEDALS = "triple_crown_medals"
    PODIUM_REGULAR = "podium_regular"
    RISING_STAR = "rising_star"
    SILVER_STREAK = "silver_streak"
    BRIDESMAID = "bridesmaid"
    RUNNER_UP_SPECIALIST = "runner_up_specialist"
    GRAND_MASTER = "grand_master"
    # Streaks and attendance
    WIN_STREAK_3 = "win_streak_3"
    WIN_STREAK_2 = "win_streak_2"
    FIRST_PLACE_FIVE = "first_place_five"
    PODIUM_STREAK_5 = "podium_streak_5"
    PODIUM_STREAK_3 = "podium_streak_3"
    DECADE_OF_DOMINANCE = "decade_of_dominance"
    NEVER_MISSED = "never_missed"
    IRON_COMPETITOR = "iron_competitor"
    COMEBACK_KID = "comeback_kid"
    TWO_TIME_CHAMPION = "two_time_champion"
    MYTHIC_COMEBACK = "mythic_comeback"
    LOSING_STREAK = "losing_streak"
    CONSISTENT_COMPETITOR = "consistent_competitor"
    COMEBACK_TOP3 = "comeback_top3"
    SLOW_BURNER = "slow_burner"
    # Career
    VETERAN = "veteran"
    FOUNDING_FATHER = "founding_father"
    ROOKIE_WINNER = "rookie_winner"
    ROOKIE_SENSATION = "rookie_sensation"
    LATE_BLOOMER = "late_bloomer"
    PARTICIPATION_TROPHY = "participation_trophy"
    ARRANGER_BRONZE = "arranger_bronze"
    ARRANGER_REVENGE = "arranger_revenge"
    UNTOUCHABLE = "untouchable"
    PERFECT_PODIUM = "perfect_podium"
    IMMORTAL_CHAMPION = "immortal_champion"
    DARK_HORSE = "dark_horse"
    TIEBREAKER = "tiebreaker"
    TIMELESS_WONDER = "timeless_wonder"
    PIONEER = "pioneer"
    DYNASTY = "dynasty"
    TRIPLE_CROWN = "triple_crown"
    LEGACY_BUILDER = "legacy_builder"
    # Positional patterns
    ODD_EVEN = "odd_even"
    GATEKEEPER = "gatekeeper"
    ELEVATOR = "elevator"
    CONSISTENT_CHAOS = "consistent_chaos"
    YO_YO = "yo_yo"
    MR_AVERAGE = "mr_average"
    FOURTH_PLACE = "fourth_place"
    LUCKY_SEVEN = "lucky_seven"
    LUCKY_SEVEN_ANNIVERSARY = "lucky_seven_anniversary"
    SAME_SPOT = "same_spot"
    EDGE_OF_GLORY = "edge_of_glory"
    GRACE_TO_GRASS = "grace_to_grass"
    GRASS_TO_GRACE = "grass_to_grace"
    BOUNCED_BACK = "bounced_back"
    NEMESIS = "nemesis"
    SANDWICH = "sandwich"
    # Comparative (need the whole roster)
    MEDAL_HOARDER = "medal_hoarder"
    GOAT = "goat"
    RECORD_BREAKER = "record_breaker"
    ERA_DEFINER = "era_definer"
    MR_CONSISTENT = "mr_consistent"
    HOST_HERO = "host_hero"
    DECADE_CHAMPION = "decade_champion"
    THE_CLOSER = "the_closer"
    RIVALRY_WINNER = "rivalry_winner"
    FAMILY_RIVALRY = "family_rivalry"


COMPARATIVE_RULES = frozenset({
    Rule.MEDAL_HOARDER,
    Rule.GOAT,
    Rule.RECORD_BREAKER,
    Rule.ERA_DEFINER,
    Rule.MR_CONSISTENT,
    Rule.HOST_HERO,
    Rule.DECADE_CHAMPION,
    Rule.THE_CLOSER,
    Rule.RIVALRY_WINNER,
    Rule.FAMILY_RIVALRY,
})


@dataclass(frozen=True)
class AchievementDefinition:
    """One catalogue entry.

    Attributes:
        id: Unique key
        name: Display name
        description: What it takes to earn it
        icon: Emoji shown by the UI
        category: One of CATEGORIES
        rarity: One of RARITIES
        base_points: Points before the rarity multiplier
        rule: The rule that awards it
    """
    id: str
    name: str
    description: str
    icon: str
    category: str
    rarity: str
    base_points: int
    rule: Rule

    def __post_init__(self):
        if self.category not in CATEGORIES:
            raise ValueError(f"Invalid category for '{self.id}': {self.category}")
        if self.rarity not in RARITIES:
            raise ValueError(f"Invalid rarity for '{self.id}': {self.rarity}")

    @property
    def multiplier(self) -> float:
        return RARITY_MULTIPLIERS[self.rarity]

    @property
    def points(self) -> float:
        return self.base_points * self.multiplier

    @property
    def is_comparative(self) -> bool:
        return self.rule in COMPARATIVE_RULES


def _a(id, icon, name, description, category, rarity, points, rule=None):
    return AchievementDefinition(
        id=id,
        name=name,
        description=description,
        icon=icon,
        category=category,
        rarity=rarity,
        base_points=points,
        rule=rule or Rule(id),
    )


ACHIEVEMENT_DEFINITIONS = (
    # ===== MEDALS =====
    _a('first_win', '🥇', 'First Victory', 'Win your first annual competition', 'medals', 'common', 10),
    _a('gold_collector', '🏆', 'Gold Collector', '3-4 gold medals', 'medals', 'rare', 30),
    _a('gold_king', '👑', 'Gold King', '5+ gold medals', 'medals', 'legendary', 100),
    _a('medal_hoarder', '🏅', 'Medal Hoarder', 'Most medals of everyone', 'medals', 'mythic', 150),
    _a('medal_magnet', '🧲', 'Medal Magnet', '10+ medals in total', 'medals', 'epic', 50),
    _a('rainbow_medals', '🌈', 'Rainbow Collector', 'At least one gold, silver and bronze', 'medals', 'rare', 25),
    _a('silver_specialist', '🥈', 'Eternal Runner-up', '3+ silver medals', 'medals', 'rare', 20),
    _a('bronze_collector', '🥉', 'Bronze Baron', '3+ bronze medals', 'medals', 'common', 15),
    _a('full_house', '🃏', 'Full House', 'Gold, silver and bronze in three different years', 'medals', 'rare', 25),
    _a('triple_crown_medals', '🎗️', 'Triple Crown', 'Three first places in total', 'medals', 'epic', 60),
    _a('podium_regular', '🥉', 'Podium Regular', 'Podium in five different years', 'medals', 'rare', 30),
    _a('rising_star', '🌠', 'Rising Star', 'Better three years in a row, ending on the podium', 'medals', 'epic', 55),
    _a('silver_streak', '🥈', 'Silver Streak', 'Second place two years in a row', 'medals', 'rare', 25),

    # ===== STREAKS =====
    _a('win_streak_3', '🔥', 'Hat-trick', 'Won three years in a row', 'streaks', 'legendary', 200),
    _a('win_streak_2', '⚡', 'Back-to-back', 'Won two years in a row', 'streaks', 'epic', 75),
    _a('podium_streak_5', '⭐', 'Podium Master', 'Podium five years in a row', 'streaks', 'epic', 80),
    _a('podium_streak_3', '🌟', 'Podium Consistency', 'Podium three years in a row', 'streaks', 'rare', 40),
    _a('never_missed', '🏃', 'Iron Man', 'Never missed an annual competition', 'streaks', 'legendary', 120),
    _a('comeback_kid', '💪', 'Comeback Kid', 'Won again after 3+ years without a win', 'streaks', 'epic', 60),
    _a('losing_streak', '📉', 'Slump', 'Off the podium three years in a row', 'streaks', 'common', 5),
    _a('consistent_competitor', '📅', 'Consistent Competitor', 'Top 10 five years in a row', 'streaks', 'rare', 30),
    _a('comeback_top3', '🔄', 'Back on Top', 'Outside the top 10 one year, podium the next', 'streaks', 'epic', 60),
    _a('slow_burner', '🐢', 'Slow Burner', 'Improved four years in a row', 'streaks', 'epic', 65),
    _a('iron_competitor', '🪨', 'Iron Competitor', 'Ten competitions in a row without a break', 'streaks',
       'legendary', 120),

    # ===== SPECIAL =====
    _a('perfect_attendance', '💯', 'Perfect Attendance', 'Took part every year since the start', 'special',
       'mythic', 300, Rule.NEVER_MISSED),
    _a('decade_champion', '🎯', 'Champion of the Decade', 'Most wins in the last ten years', 'special',
       'legendary', 180),
    _a('host_hero', '🏠', 'Host Hero', 'Arranged the most competitions', 'special', 'epic', 90),
    _a('arranger_bronze', '🥉', 'Arranger', 'Arranged a competition', 'special', 'rare', 35),
    _a('arranger_revenge', '😈', "Arranger's Revenge", 'Won the competition after the one you arranged',
       'special', 'epic', 70),
    _a('veteran', '🎖️', 'Veteran', 'Took part in 10+ annual competitions', 'special', 'rare', 45),
    _a('rookie_winner', '🌟', 'Rookie Winner', 'Won within the first three competitions', 'special', 'epic', 85),
    _a('family_rivalry', '👨‍👦', 'Family Feud', 'Beat a family member 5+ times', 'special', 'rare', 30),
    _a('rookie_sensation', '🚀', 'Rookie Sensation', 'Top 5 at the first attempt', 'special', 'rare', 30),
    _a('late_bloomer', '🌸', 'Late Bloomer', 'First medal after at least five attempts', 'special', 'epic', 50),
    _a('dark_horse', '🐎', 'Dark Horse', 'From outside the top 20 to the podium', 'special', 'legendary', 150),
    _a('tiebreaker', '🤝', 'Shared Spot', 'Shared a placing with another participant', 'special', 'common', 10),

    # ===== FUN =====
    _a('grace_to_grass', '📉', 'From Top to Bottom', 'Went from first to last', 'fun', 'legendary', 50),
    _a('grass_to_grace', '📈', 'From Bottom to Top', 'Went from last to first', 'fun', 'mythic', 250),
    _a('elevator', '🛗', 'Elevator', 'Up or down at least five places most years', 'fun', 'epic', 40),
    _a('mr_average', '😐', 'Mr. Average', 'Always in the middle of the field (±1)', 'fun', 'rare', 25),
    _a('fourth_place', '4️⃣', 'Curse of Fourth', 'Fourth place at least three times', 'fun', 'rare', 20),
    _a('lucky_seven', '7️⃣', 'Lucky Number Seven', 'Seventh place at least three times', 'fun', 'rare', 15),
    _a('bridesmaid', '👰', 'Always the Bridesmaid', '5+ silver medals without gold', 'fun', 'epic', 35),
    _a('participation_trophy', '🏆', 'Participation Trophy', '10+ competitions without a podium', 'fun',
       'common', 10),
    _a('sandwich', '🥪', 'The Sandwich', 'Squeezed between the same two people 3+ times', 'fun', 'rare', 30),
    _a('yo_yo', '🪀', 'Yo-yo', 'On and off the podium every other time', 'fun', 'epic', 45),
    _a('consistent_chaos', '🎲', 'Agent of Chaos', 'Never the same placing twice', 'fun', 'rare', 35),
    _a('nemesis', '😤', 'Nemesis', 'Placed directly behind the same person 4+ times', 'fun', 'epic', 40),
    _a('gatekeeper', '🚪', 'Gatekeeper', 'Almost always just off the podium (4th-5th)', 'fun', 'common', 15),
    _a('odd_even', '🔢', 'Odd-Even', 'Odd placings in odd years, even placings in even years', 'fun',
       'legendary', 80),
    _a('same_spot', '📍', 'Mr./Ms. Consistency', 'Same placing three years in a row', 'fun', 'rare', 25),
    _a('edge_of_glory', '🪙', 'Edge of Glory', 'Two fourth places before the first medal', 'fun', 'rare', 30),
    _a('runner_up_specialist', '🥈', 'Runner-up Pro', 'Four silvers without gold', 'fun', 'epic', 60),
    _a('bounced_back', '🔁', 'Bounced Back', 'From last place to mid-field the next time', 'fun', 'rare', 30),
    _a('lucky_seven_anniversary', '🎰', 'Seven Years Lucky', 'Seventh exactly seven years after debut', 'fun',
       'rare', 25),

    # ===== LEGENDARY =====
    _a('goat', '🐐', 'The GOAT', 'Most wins of all time (at least five)', 'legendary', 'mythic', 500),
    _a('dynasty', '👑', 'Dynasty', 'Five wins within one decade', 'legendary', 'legendary', 400),
    _a('phoenix', '🔥', 'Phoenix', 'Won right after finishing last', 'legendary', 'legendary', 200,
       Rule.GRASS_TO_GRACE),
    _a('untouchable', '🛡️', 'Untouchable', 'Never worse than third (5+ competitions)', 'legendary', 'mythic', 350),
    _a('triple_crown', '👸', 'Triple Crown of Decades', 'Won in three different decades', 'legendary', 'mythic',
       600),
    _a('rivalry_winner', '⚔️', 'Rivalry Winner', 'Most head-to-head wins in total', 'legendary', 'legendary', 300),
    _a('decade_of_dominance', '🏅', 'Decade of Dominance', 'Podium ten years in a row', 'legendary', 'legendary',
       300),
    _a('record_breaker', '📈', 'Record Breaker', 'Most first places ever', 'legendary', 'mythic', 400),
    _a('pioneer', '🚩', 'Pioneer', 'Won the first competition and still competing ten years later', 'legendary',
       'legendary', 250),
    _a('legacy_builder', '🏛️', 'Legacy Builder', 'Podium in three different decades', 'legendary', 'legendary',
       260),
    _a('two_time_champion', '2️⃣', 'Two-time Champion', 'Won again after at least five years', 'legendary',
       'legendary', 180),

    # ===== MYTHIC =====
    _a('founding_father', '🎩', 'Founding Father', 'Took part in the very first competition', 'mythic', 'mythic',
       1000),
    _a('mr_consistent', '📊', 'Mr. Consistent', 'Lowest standard deviation in placings (10+ competitions)',
       'mythic', 'mythic', 400),
    _a('grand_master', '🏆', 'Grand Master', 'Won at least seven annual competitions', 'mythic', 'mythic', 750),
    _a('perfect_podium', '✨', 'Perfect Podium', 'Never off the podium (at least eight competitions)', 'mythic',
       'mythic', 800),
    _a('the_closer', '🎯', 'The Closer', 'Won the last three competitions', 'mythic', 'mythic', 500),
    _a('immortal_champion', '🗿', 'Immortal Champion', 'Won every time (at least three times)', 'mythic', 'mythic',
       700),
    _a('first_place_five', '🔥', 'Five Straight', 'First place five years in a row', 'mythic', 'mythic', 900),
    _a('timeless_wonder', '⏳', 'Timeless Wonder', 'Top 10 in fifteen different years', 'mythic', 'mythic', 600),
    _a('mythic_comeback', '🔁', 'Mythic Comeback', 'Won again after ten years without a win', 'mythic', 'mythic',
       650),
    _a('era_definer', '📜', 'Era Definer', 'More titles than anyone else in history', 'mythic', 'mythic', 800),
)


class AchievementCatalogue:
    """
    Immutable, ordered collection of achievement definitions.

    Usage:
        catalogue = build_catalogue()
        catalogue.get('gold_king').points  # 300.0
    """

    def __init__(self, definitions: Iterable[AchievementDefinition]):
        self._definitions = tuple(definitions)
        self._by_id = {}
        for definition in self._definitions:
            if definition.id in self._by_id:
                raise ValueError(f"Duplicate achievement id: {definition.id}")
            self._by_id[definition.id] = definition

    @property
    def definitions(self) -> tuple[AchievementDefinition, ...]:
        return self._definitions

    def __iter__(self) -> Iterator[AchievementDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, achievement_id) -> bool:
        return achievement_id in self._by_id

    def __getitem__(self, achievement_id: str) -> AchievementDefinition:
        return self._by_id[achievement_id]

    def get(self, achievement_id: str) -> AchievementDefinition | None:
        return self._by_id.get(achievement_id)

    def by_category(self, category: str) -> tuple[AchievementDefinition, ...]:
        if category == 'all':
            return self._definitions
        return tuple(d for d in self._definitions if d.category == category)

    def by_rarity(self, rarity: str) -> tuple[AchievementDefinition, ...]:
        return tuple(d for d in self._definitions if d.rarity == rarity)

    def by_rule(self, rule: Rule) -> tuple[AchievementDefinition, ...]:
        return tuple(d for d in self._definitions if d.rule == rule)

    def total_points(self) -> float:
        return sum(d.points for d in self._definitions)

    def category_stats(self) -> dict:
        stats = {}
        for category in CATEGORIES:
            members = self.by_category(category)
            stats[category] = {
                'count': len(members),
                'total_points': sum(d.points for d in members),
            }
        return stats

    def rarity_distribution(self) -> dict:
        return {rarity: len(self.by_rarity(rarity)) for rarity in RARITIES}


def build_catalogue(definitions: Iterable[AchievementDefinition] = ACHIEVEMENT_DEFINITIONS) -> AchievementCatalogue:
    """Construct the catalogue (call once at startup and pass it around)."""
    return AchievementCatalogue(definitions)
