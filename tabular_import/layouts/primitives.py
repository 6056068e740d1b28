from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Mapping

"""Field rule primitives shared by the import layouts.

Every check returns an error message (or None) instead of raising: rule
violations are row data, not control flow.
"""

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")

# 桁数の上限 (1e999999999 のような指数表記で巨大整数を作らない)
MAX_NUMBER_EXPONENT = 18

# strptime directive -> (regex, human readable token)
_DIRECTIVES: dict[str, tuple[str, str]] = {
    "%Y": (r"\d{4}", "YYYY"),
    "%m": (r"\d{1,2}", "MM"),
    "%d": (r"\d{1,2}", "DD"),
}


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def require(value: str | None, message: str) -> str | None:
    """Required-field rule: non-empty after trimming whitespace."""
    return message if is_blank(value) else None


## -- dates


def _format_regex(fmt: str) -> re.Pattern[str]:
    parts: list[str] = []
    i = 0
    while i < len(fmt):
        token = fmt[i : i + 2]
        if token in _DIRECTIVES:
            parts.append(_DIRECTIVES[token][0])
            i += 2
        else:
            parts.append(re.escape(fmt[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def describe_date_format(fmt: str) -> str:
    """'%m/%d/%Y' -> 'MM/DD/YYYY'."""
    out = fmt
    for directive, (_, token) in _DIRECTIVES.items():
        out = out.replace(directive, token)
    return out


def describe_date_formats(formats: tuple[str, ...]) -> str:
    labels = [describe_date_format(f) for f in formats]
    if len(labels) <= 1:
        return "".join(labels)
    return ", ".join(labels[:-1]) + ", or " + labels[-1]


@dataclass(frozen=True)
class DateCheck:
    """Outcome of checking one date cell."""
    value: date | None
    error: str | None


def check_date(
    text: str,
    formats: tuple[str, ...],
    *,
    min_year: int,
    max_year: int,
    field: str = "date",
) -> DateCheck:
    """Format rule then calendar rule then year window.

    A cell that matches a format pattern but names a day that does not exist
    (2024-02-30) is rejected as an invalid date, not as a format problem.
    """
    s = text.strip()
    matching = [f for f in formats if _format_regex(f).match(s)]
    if not matching:
        return DateCheck(None, f"Invalid {field} format. Use {describe_date_formats(formats)}")
    parsed: date | None = None
    for fmt in matching:
        try:
            parsed = datetime.strptime(s, fmt).date()
            break
        except ValueError:
            continue
    if parsed is None:
        return DateCheck(None, f'Invalid {field} "{s}" (e.g., February 30th doesn\'t exist)')
    if parsed.year < min_year or parsed.year > max_year:
        return DateCheck(None, f"{field.capitalize()} must be between {min_year} and {max_year}")
    return DateCheck(parsed, None)


## -- numbers


def parse_number(text: str) -> Decimal | None:
    """Parse a decimal number; None when the text is not numeric."""
    s = text.strip().replace(",", "")
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite() or d.adjusted() > MAX_NUMBER_EXPONENT:
        return None
    return d


def check_positive_whole(text: str, field: str) -> str | None:
    """Numeric + strictly positive + whole (e.g. a duration in months)."""
    d = parse_number(text)
    if d is None:
        return f"{field} must be a number"
    if d <= 0:
        return f"{field} must be a positive number"
    if d != d.to_integral_value():
        return f"{field} must be a whole number"
    return None


def check_non_negative_whole(text: str, field: str) -> str | None:
    d = parse_number(text)
    if d is None:
        return f"{field} must be a number"
    if d < 0:
        return f"{field} must not be negative"
    if d != d.to_integral_value():
        return f"{field} must be a whole number"
    return None


def to_int(text: str) -> int | None:
    """Blank -> None, numeric text -> int (callers validate first)."""
    d = parse_number(text)
    return int(d) if d is not None else None


## -- enumerations / text


def match_token(text: str, tokens: Mapping[str, str]) -> str | None:
    """Case-insensitive exact match of ``text`` against a closed token set.

    ``tokens`` maps every accepted spelling (lower case) to its canonical value.
    """
    return tokens.get(" ".join(text.split()).casefold())


def check_email(text: str) -> str | None:
    return None if EMAIL_PATTERN.match(text.strip()) else "Invalid email format"


def check_phone(text: str, message: str = "Invalid phone number format") -> str | None:
    """Digits, spaces, dashes, plus signs and parentheses only."""
    return None if PHONE_PATTERN.match(text.strip()) else message
