"""
Statistics

Modules:
- aggregator: Per-participant and per-competition aggregates, medal table
- trends: Streaks, regression trend and improvement
- rivalries: Head-to-head pair statistics and the biggest rivalry
- fun: Headline facts for an overview page
"""


def __getattr__(name):
    """Lazy imports so submodules can be imported on their own."""
    if name in ("compute_stats", "compute_stats_for_all", "compute_medal_table", "ParticipantStats"):
        from pokal.stats import aggregator
        return getattr(aggregator, name)
    if name in ("compute_trend", "Trend"):
        from pokal.stats import trends
        return getattr(trends, name)
    if name in ("compute_rivalries", "find_biggest_rivalry"):
        from pokal.stats import rivalries
        return getattr(rivalries, name)
    if name == "compute_fun_stats":
        from pokal.stats.fun import compute_fun_stats
        return compute_fun_stats
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
