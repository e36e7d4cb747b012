"""Exceptions raised by Frontier Analyst.

Only input problems abort a run. Data-availability trouble degrades to a
simulated result and numeric edge cases are defined rather than raised.
"""

from __future__ import annotations

from typing import Iterable


class FrontierError(Exception):
    """Base class for all Frontier Analyst errors."""


class InvalidSymbolError(FrontierError, ValueError):
    """One or more tickers do not resolve at the data source."""

    def __init__(self, tickers: Iterable[str]):
        # De-duplicate, keep first-seen order
        self.tickers: tuple[str, ...] = tuple(dict.fromkeys(tickers))
        super().__init__(f"Invalid tickers found: {', '.join(self.tickers)}")


class PositionValidationError(FrontierError, ValueError):
    """The submitted positions are malformed (count, blanks, duplicates, weights)."""
