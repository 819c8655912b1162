"""
trade_journal.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for consistent log enrichment.
- Redaction of sensitive values before they reach log sinks.
"""

# Package marker.
