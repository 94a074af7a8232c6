# tankcheck/pricing/__init__.py
from .providers import (
    HttpQuoteProvider,
    PresetQuoteProvider,
    QuoteProvider,
    QuoteProviderError,
    TotalQuote,
)
from .bundler import TierQuote, TieredQuoteBoard, bundle_quotes
