"""
Scoring of forecaster predictions against reference outcomes.

Modules
-------
statistics  MAPE, bias, range capture, Brier score and descriptive statistics.
accuracy    Per-forecaster accuracy records, leaderboard ranking, grades.
consensus   Per-market summary of the crowd's close predictions.
"""
