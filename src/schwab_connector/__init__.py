from .broker import SchwabBroker
from .client import SchwabApiClient, build_order_body, parse_order_id
from .exceptions import SchwabAuthError
from .models import SchwabTokens, SchwabAccountNumber

__version__ = "1.0.0"

__all__ = [
    "SchwabBroker",
    "SchwabApiClient",
    "build_order_body",
    "parse_order_id",
    "SchwabAuthError",
    "SchwabTokens",
    "SchwabAccountNumber",
    "__version__",
]
