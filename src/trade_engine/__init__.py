from .engine import TradeEngine
from .executor import OrderExecutor, MAX_AUTH_RETRIES
from .summary import ExecutionSummaryAggregator, format_summary, ALL_SYMBOLS
from .broker_factory import create_broker_client
from .redis_credential_store import RedisCredentialStore
from .context import portfolio_context, get_current_portfolio
from .logger import AppLogger, configure_root_logger

__version__ = "1.0.0"

__all__ = [
    "TradeEngine",
    "OrderExecutor",
    "MAX_AUTH_RETRIES",
    "ExecutionSummaryAggregator",
    "format_summary",
    "ALL_SYMBOLS",
    "create_broker_client",
    "RedisCredentialStore",
    "portfolio_context",
    "get_current_portfolio",
    "AppLogger",
    "configure_root_logger",
    "__version__",
]
