"""Scanner for ranking evaluated coins."""

from .market_scanner import SignalScanner

__all__ = ["SignalScanner"]
