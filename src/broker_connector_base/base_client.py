from abc import ABC, abstractmethod
from typing import Optional
import logging
from .credential_store import CredentialStore
from .models import Brokerage, PositionMap, TradeAction, TradeExecutionResult
from .session_cache import SessionCache

INVALID_QUANTITY_MESSAGE = "Invalid share quantity: must be greater than 0"


class BrokerClient(ABC):
    """Abstract base class for brokerage adapters.

    Adapters are stateless apart from the shared SessionCache; credentials are
    read from the CredentialStore on demand, so one adapter instance serves
    every portfolio bound to its brokerage.
    """

    brokerage: Brokerage

    def __init__(
        self,
        store: CredentialStore,
        cache: SessionCache,
        trading_enabled: bool,
        order_type: str,
        logger: Optional[logging.Logger] = None
    ):
        self.store = store
        self.cache = cache
        self._trading_enabled = trading_enabled
        self._order_type = order_type
        self.logger = logger or logging.getLogger(__name__)

    @property
    def trading_enabled(self) -> bool:
        return self._trading_enabled

    @property
    def order_type(self) -> str:
        return self._order_type

    @property
    def trading_disabled_message(self) -> str:
        return f"Trading is disabled for {self.brokerage.display_name}"

    @abstractmethod
    async def check_credentials(self, portfolio_id: int) -> None:
        """Raise ConfigurationError if the portfolio cannot trade; no network calls"""
        pass

    @abstractmethod
    async def resolve_account_id(self, portfolio_id: int) -> str:
        """Return the identifier used on trading endpoints, resolving it if needed"""
        pass

    @abstractmethod
    async def get_positions(self, portfolio_id: int) -> PositionMap:
        """Get live positions keyed by symbol"""
        pass

    @abstractmethod
    async def refresh_credentials(self, portfolio_id: int) -> bool:
        """Refresh credentials after an auth failure.

        Returns True when the failed call is worth retrying once.
        """
        pass

    @abstractmethod
    async def _submit_order(
        self,
        portfolio_id: int,
        side: TradeAction,
        symbol: str,
        shares: int,
        price: float
    ) -> Optional[str]:
        """Send a single-leg equity DAY order and return the broker order id"""
        pass

    async def place_order(
        self,
        portfolio_id: int,
        side: TradeAction,
        symbol: str,
        shares: int,
        price: float
    ) -> TradeExecutionResult:
        """Place a trade order.

        Disabled trading and non-positive quantities come back as failure
        results without a network call. Broker and transport errors propagate.
        """
        if not self.trading_enabled:
            return TradeExecutionResult(
                symbol=symbol, action=side, shares=shares, price=price,
                success=False, error=self.trading_disabled_message
            )

        if shares <= 0:
            return TradeExecutionResult(
                symbol=symbol, action=side, shares=shares, price=price,
                success=False, error=INVALID_QUANTITY_MESSAGE
            )

        order_id = await self._submit_order(portfolio_id, side, symbol, shares, price)

        order_desc = f"{side} {shares} {symbol}"
        if self.order_type.upper() == 'LIMIT':
            order_desc += f" @ ${price}"
        self.logger.info(f"Placed {self.brokerage.display_name} order: {order_desc} (order id {order_id})")

        return TradeExecutionResult(
            symbol=symbol, action=side, shares=shares, price=price,
            success=True, order_id=order_id
        )
