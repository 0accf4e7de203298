"""
Terminal reports and file exports.

Modules
-------
formatters  ASCII tables for the leaderboard, insights, consensus and forecasters.
export      CSV/JSON writers and flatteners for scoring models.
"""
