"""
target_gate.api.__main__

Process entrypoint: `python -m target_gate.api`.

Responsibilities:
- Load `Settings` from the `TGATE_*` environment.
- Build the gate app and serve it with uvicorn on `api_host:api_port`.
"""

from __future__ import annotations

import uvicorn

from target_gate.api.app import create_app
from target_gate.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        # structlog owns logging; keep uvicorn from installing its own handlers.
        log_config=None,
    )


if __name__ == "__main__":
    main()
