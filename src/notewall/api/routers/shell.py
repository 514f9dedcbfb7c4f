"""
Application shell routing.

A shared wall lives at ``/<id>``. The server never renders walls itself; it
hands back the application shell and the client reads the identifier from
the address. Routing rules:

- ``GET /``            -> the shell.
- ``GET /<segment>``   -> the shell if ``segment`` is a well-formed identifier,
                          else the static file of that name, else 404.

Nothing outside the static directory is ever served.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from notewall.core.identifiers import is_valid_identifier
from notewall.core.settings import load_settings

router = APIRouter(tags=["Shell"], include_in_schema=False)

SHELL_FILE = "index.html"


def _static_dir() -> Path:
    return load_settings().static_dir.resolve()


def _shell() -> FileResponse:
    shell = _static_dir() / SHELL_FILE
    if not shell.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return FileResponse(shell, media_type="text/html")


@router.get("/")
def index() -> FileResponse:
    return _shell()


@router.get("/{segment}")
def resolve_segment(segment: str) -> FileResponse:
    """Serve the shell for wall addresses, otherwise a static asset."""
    if is_valid_identifier(segment):
        return _shell()

    root = _static_dir()
    candidate = (root / segment).resolve()
    if candidate.is_relative_to(root) and candidate.is_file():
        return FileResponse(candidate)
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


__all__ = ["router"]
