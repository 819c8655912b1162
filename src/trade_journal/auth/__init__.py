"""
trade_journal.auth

Authentication/authorization package.

Responsibilities:
- JWT helpers and validation.
- FastAPI auth dependencies (Principal, active-user gate, role checks).
"""

# Package marker.
