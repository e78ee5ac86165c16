"""Sequential order execution with a single refresh-and-retry on auth failure"""

from typing import Awaitable, Callable, Iterable, Optional, TypeVar
from broker_connector_base import (
    INVALID_QUANTITY_MESSAGE,
    BrokerAuthError,
    BrokerClient,
    ConfigurationError,
    PlannedOrder,
    PositionMap,
    RefreshTokenExpiredError,
    SkippedTrade,
    TradeExecutionResult,
)
from trade_engine.logger import AppLogger
from trade_engine.summary import ExecutionSummaryAggregator

app_logger = AppLogger(__name__)

T = TypeVar('T')

MAX_AUTH_RETRIES = 1


class OrderExecutor:
    """Submit orders one at a time through a broker adapter.

    An auth failure triggers exactly one credential refresh followed by one
    resubmission. Any other failure, or a second failure after the refresh,
    becomes a failure result for that symbol and execution moves on. A
    rejected refresh token fails the rest of the batch without further calls;
    configuration errors propagate to the caller.
    """

    def __init__(self, broker: BrokerClient):
        self.broker = broker

    async def call_with_auth_retry(self, portfolio_id: int, operation: Callable[[], Awaitable[T]]) -> T:
        retries = 0
        while True:
            try:
                return await operation()
            except RefreshTokenExpiredError:
                raise
            except BrokerAuthError as e:
                if retries >= MAX_AUTH_RETRIES:
                    raise
                retries += 1
                app_logger.log_warning(
                    f"{self.broker.brokerage.display_name} auth failure ({e.code}); refreshing credentials and retrying"
                )
                if not await self.broker.refresh_credentials(portfolio_id):
                    raise

    async def fetch_positions(self, portfolio_id: int) -> PositionMap:
        return await self.call_with_auth_retry(
            portfolio_id, lambda: self.broker.get_positions(portfolio_id)
        )

    def _failure(self, order: PlannedOrder, error: str) -> TradeExecutionResult:
        return TradeExecutionResult(
            symbol=order.symbol,
            action=order.action,
            shares=order.shares,
            price=order.price,
            success=False,
            error=error
        )

    async def execute_order(self, portfolio_id: int, order: PlannedOrder) -> TradeExecutionResult:
        """Place one order; failures become results.

        RefreshTokenExpiredError and ConfigurationError propagate: neither can
        succeed for any other order of the batch.
        """
        if order.shares <= 0:
            return self._failure(order, INVALID_QUANTITY_MESSAGE)

        if not self.broker.trading_enabled:
            return self._failure(order, self.broker.trading_disabled_message)

        async def submit() -> TradeExecutionResult:
            await self.broker.resolve_account_id(portfolio_id)
            return await self.broker.place_order(
                portfolio_id, order.action, order.symbol, order.shares, order.price
            )

        try:
            return await self.call_with_auth_retry(portfolio_id, submit)
        except (RefreshTokenExpiredError, ConfigurationError):
            raise
        except Exception as e:
            return self._failure(order, str(e) or type(e).__name__)

    async def execute(
        self,
        portfolio_id: int,
        decisions: Iterable[PlannedOrder | SkippedTrade],
        aggregator: ExecutionSummaryAggregator
    ) -> None:
        """Run decisions in order; skips never reach the broker.

        Once the refresh token is rejected every remaining order is recorded
        as failed with that error and nothing more is sent.
        """
        expired: Optional[RefreshTokenExpiredError] = None
        for decision in decisions:
            if isinstance(decision, SkippedTrade):
                aggregator.skip(decision.symbol, decision.reason)
                continue

            if expired is not None:
                aggregator.record(self._failure(decision, str(expired)))
                continue

            try:
                result = await self.execute_order(portfolio_id, decision)
            except RefreshTokenExpiredError as e:
                app_logger.log_error(
                    f"{self.broker.brokerage.display_name} refresh token rejected; "
                    f"failing remaining orders for portfolio {portfolio_id}"
                )
                expired = e
                result = self._failure(decision, str(e))
            aggregator.record(result)
