"""
trade_journal.services

Application services.

Responsibilities:
- Own transactions (commit) and ownership/permission checks.
- Translate failures into `trade_journal.errors` domain exceptions.
- Call the pure analytics/validation modules with repository data.
"""

# Package marker; services are imported directly from submodules.
