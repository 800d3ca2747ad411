from __future__ import annotations

from datetime import date


def today() -> date:
    return date.today()


def casefold_key(value: str | None) -> str:
    return (value or "").casefold()
