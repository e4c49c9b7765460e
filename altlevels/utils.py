"""Small formatting helpers shared by the ledger, reports and commands."""

from __future__ import annotations

from typing import SupportsInt


def format_number(value: SupportsInt) -> str:
    """Return ``value`` with ``'`` as the thousands separator."""

    integer = int(value)
    sign = "-" if integer < 0 else ""
    formatted = f"{abs(integer):,}".replace(",", "'")
    return f"{sign}{formatted}"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{format_number(count)} {word}"


__all__ = ["format_number", "pluralize"]
