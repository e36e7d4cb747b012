"""Market data client - daily closing prices classified into fetch outcomes.

Primary: yfinance | Fallback: TwelveData REST API

Every call returns a ``PriceHistory``, ``SymbolNotFound`` or
``TransientFailure``; nothing is raised to the caller. The distinction
between an unknown symbol and a flaky connection is the whole point of
this module, so each source maps its own error shapes onto the two
failure kinds.
"""

from __future__ import annotations

import math

import pandas as pd
import requests as req_lib
import yfinance as yf
from yfinance.exceptions import YFPricesMissingError, YFTzMissingError

from frontier.config import Keys, SETTINGS
from frontier.models import (
    FetchOutcome,
    PriceHistory,
    SymbolNotFound,
    TimeRange,
    TransientFailure,
)
from frontier.utils.cache import DataCache
from frontier.utils.logger import setup_logger
from frontier.utils.rate_limiter import RateLimiter

logger = setup_logger("market_data")

_FETCH_SETTINGS = SETTINGS.get("fetch", {})
MIN_HISTORY_POINTS = _FETCH_SETTINGS.get("min_history_points", 10)

_TWELVEDATA_URL = "https://api.twelvedata.com/time_series"


def _clean_closes(ticker: str, dates, closes, display_name: str | None) -> FetchOutcome:
    """Drop missing or non-positive closes and enforce the minimum history length."""
    clean_dates: list[str] = []
    clean_prices: list[float] = []
    for d, p in zip(dates, closes):
        if p is None:
            continue
        p = float(p)
        if math.isnan(p) or p <= 0:
            continue
        clean_dates.append(str(d))
        clean_prices.append(p)

    if len(clean_prices) < MIN_HISTORY_POINTS:
        return TransientFailure(ticker, f"only {len(clean_prices)} usable prices")

    return PriceHistory(
        ticker=ticker,
        dates=tuple(clean_dates),
        prices=tuple(clean_prices),
        display_name=display_name,
    )


def _fetch_twelvedata_history(ticker: str, time_range: TimeRange) -> FetchOutcome:
    """Fetch daily closes from TwelveData (fallback when yfinance is rate-limited).

    TwelveData free tier: 800 calls/day, 8 calls/min.
    """
    api_key = Keys.TWELVE_DATA
    if not api_key:
        logger.debug("No TwelveData API key, skipping fallback")
        return TransientFailure(ticker, "no fallback source configured")

    outputsize = min(time_range.trading_days + 1, 5000)

    try:
        logger.info("TwelveData fallback: %s (range=%s, outputsize=%d)", ticker, time_range.value, outputsize)
        resp = req_lib.get(
            _TWELVEDATA_URL,
            params={
                "symbol": ticker,
                "interval": "1day",
                "outputsize": outputsize,
                "apikey": api_key,
                "format": "JSON",
            },
            timeout=30,
        )
        data = resp.json()
    except (req_lib.RequestException, ValueError) as e:
        logger.warning("TwelveData fetch failed for %s: %s", ticker, e)
        return TransientFailure(ticker, f"twelvedata: {e}")

    if data.get("status") == "error":
        message = str(data.get("message", "unknown"))
        if data.get("code") in (400, 404) and "not found" in message.lower():
            return SymbolNotFound(ticker, message)
        logger.warning("TwelveData error for %s: %s", ticker, message)
        return TransientFailure(ticker, f"twelvedata: {message}")

    values = data.get("values", [])
    if not values:
        return TransientFailure(ticker, "twelvedata returned no values")

    df = pd.DataFrame(values)
    df["datetime"] = pd.to_datetime(df["datetime"])
    df = df.set_index("datetime").sort_index()
    closes = pd.to_numeric(df["close"], errors="coerce")

    logger.info("TwelveData: got %d rows for %s", len(df), ticker)
    return _clean_closes(ticker, df.index.strftime("%Y-%m-%d"), closes.tolist(), None)


class MarketDataClient:
    """Fetch daily price histories and classify failures.

    Instances are safe to share between the provider's fetch threads: the
    only shared state is the rate limiter (locked) and the file cache.
    """

    def __init__(
        self,
        use_cache: bool | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        if use_cache is None:
            use_cache = SETTINGS.get("cache", {}).get("enabled", True)
        self.cache = DataCache("price_history") if use_cache else None
        self.rate_limiter = rate_limiter or RateLimiter(
            _FETCH_SETTINGS.get("calls_per_minute", 120)
        )

    def fetch_history(self, ticker: str, time_range: TimeRange) -> FetchOutcome:
        """Get daily closes for *ticker* over *time_range*.

        Tries yfinance first, falls back to TwelveData only when yfinance
        failed for a transient reason. An unknown symbol is final.
        """
        time_range = TimeRange.parse(time_range)
        cache_key = f"{ticker}_{time_range.value}_1d"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("Cache hit: %s", cache_key)
                return PriceHistory(
                    ticker=ticker,
                    dates=tuple(cached["dates"]),
                    prices=tuple(cached["prices"]),
                    display_name=cached.get("display_name"),
                )

        outcome = self._fetch_yfinance(ticker, time_range)
        if isinstance(outcome, TransientFailure):
            fallback = _fetch_twelvedata_history(ticker, time_range)
            if not isinstance(fallback, TransientFailure):
                outcome = fallback

        if isinstance(outcome, PriceHistory) and self.cache is not None:
            self.cache.set(cache_key, {
                "dates": list(outcome.dates),
                "prices": list(outcome.prices),
                "display_name": outcome.display_name,
            })
        return outcome

    # Allows the client itself to be passed wherever a fetch function is expected
    __call__ = fetch_history

    def _fetch_yfinance(self, ticker: str, time_range: TimeRange) -> FetchOutcome:
        logger.info("Fetching price history: %s (range=%s)", ticker, time_range.value)
        self.rate_limiter.wait()
        try:
            stock = yf.Ticker(ticker)
            df = stock.history(period=time_range.value, interval="1d", raise_errors=True)
        except (YFTzMissingError, YFPricesMissingError) as e:
            logger.warning("Symbol not found: %s (%s)", ticker, e)
            return SymbolNotFound(ticker, str(e))
        except Exception as e:
            logger.warning("yfinance history failed for %s: %s", ticker, e)
            return TransientFailure(ticker, f"yfinance: {e}")

        if df is None or df.empty or "Close" not in df.columns:
            return TransientFailure(ticker, "yfinance returned no rows")

        return _clean_closes(
            ticker,
            df.index.strftime("%Y-%m-%d"),
            df["Close"].tolist(),
            self._display_name(stock),
        )

    @staticmethod
    def _display_name(stock: yf.Ticker) -> str | None:
        """Long name, else short name, from the chart metadata of the last history call."""
        try:
            meta = stock.history_metadata or {}
        except Exception as e:
            logger.debug("No history metadata for %s: %s", getattr(stock, "ticker", "?"), e)
            return None
        return meta.get("longName") or meta.get("shortName") or None
