"""Run the service: ``python -m account_sync``."""

from __future__ import annotations

import uvicorn

from account_sync.app import create_app
from account_sync.config import Settings
from account_sync.logging_config import setup_logging


def main() -> None:
    settings = Settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
