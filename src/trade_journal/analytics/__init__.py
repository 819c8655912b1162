"""
trade_journal.analytics

Pure trade analytics.

Responsibilities:
- Metrics, streaks and risk ratios (`metrics`).
- Timeframe alignment, session detection and R-multiples (`timeframes`).
- Composite performance score (`scoring`).
- Grouped breakdowns for dashboards and reports (`breakdowns`).
- Day-trade tax estimate (`tax`).
"""

# Package marker; modules take plain trade-like objects and never touch the DB.
