"""
Achievements

Modules:
- catalogue: Immutable achievement definitions and the Rule enumeration
- patterns: Per-participant rules
- comparative: Roster-wide rules
- scoring: Points and completion statistics
"""


def __getattr__(name):
    """Lazy imports so submodules can be imported on their own."""
    if name in ("AchievementCatalogue", "AchievementDefinition", "Rule", "build_catalogue"):
        from pokal.achievements import catalogue
        return getattr(catalogue, name)
    if name == "PatternRuleEngine":
        from pokal.achievements.patterns import PatternRuleEngine
        return PatternRuleEngine
    if name == "ComparativeRuleEngine":
        from pokal.achievements.comparative import ComparativeRuleEngine
        return ComparativeRuleEngine
    if name in ("achievement_points", "compute_achievement_summary", "points_table"):
        from pokal.achievements import scoring
        return getattr(scoring, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
