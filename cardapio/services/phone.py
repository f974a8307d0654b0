from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def is_valid_phone(value: str | None) -> bool:
    # fixo (10) ou celular (11), sempre com DDD
    return len(normalize_phone(value)) in (10, 11)


def format_phone(value: str | None) -> str:
    digits = normalize_phone(value)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return value or ""
