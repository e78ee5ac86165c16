from .base_client import BrokerClient, INVALID_QUANTITY_MESSAGE
from .credential_store import CredentialStore, InMemoryCredentialStore
from .session_cache import SessionCache
from .http import HttpResponse, send_request
from .models import (
    # Portfolio and credential models
    Brokerage,
    Portfolio,
    SchwabCredential,
    TradierCredential,
    BrokerCredential,
    # Market data models
    Position,
    PositionMap,
    # Signal and reconciliation models
    TradeAction,
    TradeSignal,
    ProcessedSignals,
    PlannedOrder,
    SkippedTrade,
    # Execution result models
    TradeExecutionResult,
    TradeExecutionSummary,
    ConnectionStatus,
)
from .exceptions import (
    BrokerError,
    ConfigurationError,
    NoCredentialsError,
    BrokerConnectionError,
    BrokerAPIError,
    BrokerAuthError,
    RefreshTokenExpiredError,
    OrderExecutionError,
)

__version__ = "1.0.0"

__all__ = [
    "BrokerClient",
    "INVALID_QUANTITY_MESSAGE",
    "CredentialStore",
    "InMemoryCredentialStore",
    "SessionCache",
    "HttpResponse",
    "send_request",
    "Brokerage",
    "Portfolio",
    "SchwabCredential",
    "TradierCredential",
    "BrokerCredential",
    "Position",
    "PositionMap",
    "TradeAction",
    "TradeSignal",
    "ProcessedSignals",
    "PlannedOrder",
    "SkippedTrade",
    "TradeExecutionResult",
    "TradeExecutionSummary",
    "ConnectionStatus",
    "BrokerError",
    "ConfigurationError",
    "NoCredentialsError",
    "BrokerConnectionError",
    "BrokerAPIError",
    "BrokerAuthError",
    "RefreshTokenExpiredError",
    "OrderExecutionError",
    "__version__",
]
