"""Data source modules: live prices, synthetic fallback and the aligned returns provider."""

from .market_data import MarketDataClient
from .synthetic import SyntheticReturnGenerator
from .returns_provider import ReturnsProvider
