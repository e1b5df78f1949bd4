"""Debounced synchronization of the swap form's amount fields."""

from jupitrails.sync.debounce import DebouncedCall
from jupitrails.sync.engine import AmountSide, QuoteSyncEngine, SwapForm

__all__ = ["AmountSide", "DebouncedCall", "QuoteSyncEngine", "SwapForm"]
