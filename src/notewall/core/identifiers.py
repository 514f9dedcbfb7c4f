"""Identifier allocation for walls.

An identifier is exactly eight characters, each a lowercase ASCII letter or
digit. The same pattern is checked by the store, the HTTP router and the
client engine, so it lives here and nowhere else.

Allocation draws from a space of 36**8 (about 2.8e12) values. Draws are
capped (`allocation_max_attempts` setting) so a pathological generator or an
almost-full store fails loudly with `AllocationError` instead of spinning.
"""

from __future__ import annotations

import re
import secrets
import string
from collections.abc import Callable, Container

from notewall.core.errors import AllocationError
from notewall.core.settings import load_settings

IDENTIFIER_LENGTH = 8
IDENTIFIER_ALPHABET = string.ascii_lowercase + string.digits
IDENTIFIER_REGEX = rf"^[a-z0-9]{{{IDENTIFIER_LENGTH}}}$"
IDENTIFIER_PATTERN = re.compile(IDENTIFIER_REGEX)


def is_valid_identifier(value: object) -> bool:
    """Return True if ``value`` is a well-formed wall identifier."""
    return isinstance(value, str) and IDENTIFIER_PATTERN.fullmatch(value) is not None


def generate() -> str:
    """Draw one identifier uniformly from ``[a-z0-9]{8}``."""
    return "".join(secrets.choice(IDENTIFIER_ALPHABET) for _ in range(IDENTIFIER_LENGTH))


def allocate_unique(
    existing: Container[str],
    *,
    max_attempts: int | None = None,
    generator: Callable[[], str] = generate,
) -> str:
    """Draw identifiers until one is absent from ``existing``.

    Parameters
    ----------
    existing:
        Anything supporting ``in``; normally the store's key set.
    max_attempts:
        Upper bound on draws. ``None`` reads the configured cap; ``0``
        means unbounded.
    generator:
        Source of candidate identifiers (overridable in tests).

    Raises
    ------
    AllocationError
        If every draw within ``max_attempts`` collided.
    """
    if max_attempts is None:
        max_attempts = load_settings().allocation_max_attempts

    attempts = 0
    while True:
        candidate = generator()
        attempts += 1
        if candidate not in existing:
            return candidate
        if max_attempts and attempts >= max_attempts:
            raise AllocationError(f"No free identifier after {attempts} attempts")


__all__ = [
    "IDENTIFIER_ALPHABET",
    "IDENTIFIER_LENGTH",
    "IDENTIFIER_PATTERN",
    "IDENTIFIER_REGEX",
    "allocate_unique",
    "generate",
    "is_valid_identifier",
]
