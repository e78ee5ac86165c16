from .broker import TradierBroker
from .client import TradierClient, parse_positions

__version__ = "1.0.0"

__all__ = [
    "TradierBroker",
    "TradierClient",
    "parse_positions",
    "__version__",
]
