"""
Collation - Base-Sensitivity, Numeric-Aware String Ordering.

Strings compare by their base letters: case and diacritics are ignored
("a" == "A" == "á"), and with numeric collation digit runs compare by
value ("item 2" < "item 10").
"""

from __future__ import annotations

import locale as _locale
import numbers
import re
import unicodedata
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator, Optional, Tuple, Union

_DIGITS = re.compile(r"(\d+)")

CollationKey = Tuple[Tuple[int, Union[int, str]], ...]


def fold(text: str) -> str:
    """Strip diacritics and case from text."""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def comparable_value(value: Any) -> Any:
    """
    Map a sort value onto a type that orders consistently.

    str, int and float pass through and bool becomes int. Other numeric
    types (Decimal, Fraction, numpy scalars) become int or float so they
    order numerically, datetime and date become POSIX timestamps, and
    anything else is converted with str().
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, Decimal):
        return float("nan") if value.is_nan() else float(value)
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).timestamp()
    return str(value)


class Collator:
    """
    Produces sort keys for strings.

    Args:
        locale: Optional locale name (e.g. "de_DE.UTF-8"); text chunks are
            then transformed with that locale's collation rules
        numeric: Compare digit runs as numbers

    Raises:
        ValueError: If the locale is not available on this system
    """

    def __init__(self, locale: Optional[str] = None, numeric: bool = True) -> None:
        self.locale = locale
        self.numeric = numeric
        if locale is not None:
            with self.activated():
                pass

    @contextmanager
    def activated(self) -> Iterator[None]:
        """Set LC_COLLATE to the configured locale for the duration of the block."""
        if self.locale is None:
            yield
            return
        previous = _locale.setlocale(_locale.LC_COLLATE)
        try:
            _locale.setlocale(_locale.LC_COLLATE, self.locale)
        except _locale.Error as e:
            raise ValueError(f"Unsupported collation locale: {self.locale}") from e
        try:
            yield
        finally:
            _locale.setlocale(_locale.LC_COLLATE, previous)

    def sort_key(self, text: str) -> CollationKey:
        """
        Sort key for a string. Must be called inside activated() when a
        locale is configured.
        """
        folded = fold(text)
        if not self.numeric:
            return ((1, self._transform(folded)),)
        parts = []
        for i, chunk in enumerate(_DIGITS.split(folded)):
            if not chunk:
                continue
            if i % 2:
                parts.append((0, int(chunk)))
            else:
                parts.append((1, self._transform(chunk)))
        return tuple(parts)

    def _transform(self, text: str) -> str:
        if self.locale is None:
            return text
        return _locale.strxfrm(text)
