"""
trade_journal.api.__main__

Run the journal API with `python -m trade_journal.api`.

Settings come from `TJ_*` environment variables. A production start with the
default JWT secret is refused, since every dev token would verify.
"""

from __future__ import annotations

import uvicorn

from trade_journal.api.app import create_app
from trade_journal.observability.logging import get_logger
from trade_journal.settings import Settings, get_settings

log = get_logger(__name__)

_DEFAULT_SECRET = Settings.model_fields["jwt_secret"].default


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)
    if settings.env == "prod" and settings.jwt_secret == _DEFAULT_SECRET:
        log.error("refusing_to_start", reason="default jwt secret in prod")
        raise SystemExit(2)

    log.info("api_starting", env=settings.env, host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
        # RequestContextMiddleware already emits one http_request event per call.
        access_log=False,
    )


if __name__ == "__main__":
    main()
