"""
ASGI Entry Point for the NoteWall API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads environment variables from `.env` before the application factory
runs so settings read at import time see them.

Usage
-----
Run via the module entry point:
    $ python -m notewall.api.server

Or via uvicorn directly:
    $ uvicorn notewall.api.server:app --reload
"""

from __future__ import annotations

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from notewall.api.app import create_app
from notewall.core.settings import get_logger, load_settings

load_dotenv(dotenv_path=Path(".env"))

app = create_app()

logger = get_logger("notewall.server")


def main(host: str | None = None, port: int | None = None, reload: bool | None = None) -> None:
    """Run the API server; unset arguments fall back to settings."""
    cfg = load_settings()
    host = host or cfg.host
    port = port or cfg.port
    reload = cfg.is_dev if reload is None else reload

    logger.info("Serving NoteWall on http://%s:%d (env=%s)", host, port, cfg.environment)
    uvicorn.run(
        "notewall.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
