"""Portfolio-level entry points: reconcile, execute, inspect and connect"""

from typing import Dict, List, Optional, Sequence
from broker_connector_base import (
    BrokerClient,
    Brokerage,
    ConfigurationError,
    ConnectionStatus,
    CredentialStore,
    NoCredentialsError,
    PlannedOrder,
    Position,
    ProcessedSignals,
    SchwabCredential,
    SessionCache,
    TradeExecutionSummary,
    TradeSignal,
    TradierCredential,
)
from app_config import AppConfig
from position_reconciler import PositionReconciler
from trade_engine.broker_factory import create_broker_client
from trade_engine.context import portfolio_context
from trade_engine.executor import OrderExecutor
from trade_engine.logger import AppLogger
from trade_engine.summary import ExecutionSummaryAggregator

app_logger = AppLogger(__name__)


class TradeEngine:
    """Trade execution and credential lifecycle for brokerage-bound portfolios.

    Owns the session cache and one adapter per brokerage. Portfolios are
    processed one at a time; every broker call of a batch is awaited in turn.
    """

    def __init__(self, config: AppConfig, store: CredentialStore, cache: Optional[SessionCache] = None):
        self.config = config
        self.store = store
        self.cache = cache or SessionCache(logger=app_logger.logger)
        self.reconciler = PositionReconciler(logger=app_logger.logger)
        self._brokers: Dict[Brokerage, BrokerClient] = {}

    def broker_for(self, brokerage: Brokerage) -> BrokerClient:
        if brokerage not in self._brokers:
            self._brokers[brokerage] = create_broker_client(
                brokerage, self.config, self.store, self.cache, logger=app_logger.logger
            )
        return self._brokers[brokerage]

    async def _bound_broker(self, portfolio_id: int) -> BrokerClient:
        brokerage = await self.store.get_brokerage(portfolio_id)
        if brokerage is None:
            raise NoCredentialsError(portfolio_id)
        return self.broker_for(brokerage)

    async def _trading_broker(self, portfolio_id: int) -> Optional[BrokerClient]:
        """Broker ready for trading, or None when the batch should be skipped.

        A portfolio without a binding is simply not connected yet and trading
        is skipped. A binding with missing credentials or app keys raises.
        """
        try:
            broker = await self._bound_broker(portfolio_id)
        except NoCredentialsError:
            app_logger.log_info(f"Portfolio {portfolio_id} is not connected to a brokerage; skipping trading")
            return None

        if not broker.trading_enabled:
            app_logger.log_info(
                f"{broker.trading_disabled_message}. Enable it in the {broker.brokerage.value} configuration."
            )
            return None

        await broker.check_credentials(portfolio_id)
        return broker

    async def execute_trades(self, portfolio_id: int, signals: ProcessedSignals) -> TradeExecutionSummary:
        """Reconcile signals against live positions and place the resulting orders"""
        with portfolio_context(portfolio_id):
            aggregator = ExecutionSummaryAggregator()
            broker = await self._trading_broker(portfolio_id)
            if broker is None:
                return aggregator.summary

            app_logger.log_info(
                f"Executing trades for {len(signals.enter_signals)} enter and "
                f"{len(signals.exit_signals)} exit signals via {broker.brokerage.display_name}"
            )
            executor = OrderExecutor(broker)

            try:
                positions = await executor.fetch_positions(portfolio_id)
            except ConfigurationError:
                raise
            except Exception as e:
                return aggregator.abort(f"Failed to fetch positions: {e}")

            app_logger.log_info(f"Fetched {len(positions)} current positions")
            plan = self.reconciler.reconcile(signals, positions)
            await executor.execute(portfolio_id, plan.decisions, aggregator)
            return aggregator.finish()

    async def execute_trades_from_actions(
        self,
        portfolio_id: int,
        actions: Sequence[TradeSignal]
    ) -> TradeExecutionSummary:
        """Place already-decided actions as given, without reconciliation"""
        with portfolio_context(portfolio_id):
            aggregator = ExecutionSummaryAggregator()
            broker = await self._trading_broker(portfolio_id)
            if broker is None:
                return aggregator.summary

            if not actions:
                app_logger.log_info("No actions to execute")
                return aggregator.summary

            app_logger.log_info(
                f"Executing {len(actions)} trades from actions via {broker.brokerage.display_name}"
            )
            executor = OrderExecutor(broker)
            orders = [
                PlannedOrder(symbol=a.symbol, action=a.action, shares=a.shares, price=a.price)
                for a in actions
            ]
            await executor.execute(portfolio_id, orders, aggregator)
            return aggregator.finish()

    async def get_portfolio_positions(self, portfolio_id: int) -> List[Position]:
        """Live positions of the portfolio's brokerage account"""
        with portfolio_context(portfolio_id):
            broker = await self._bound_broker(portfolio_id)
            await broker.check_credentials(portfolio_id)
            positions = await OrderExecutor(broker).fetch_positions(portfolio_id)
            return list(positions.values())

    async def verify_connection(self, portfolio_id: int) -> ConnectionStatus:
        """Read-only connection check; never raises"""
        with portfolio_context(portfolio_id):
            brokerage = await self.store.get_brokerage(portfolio_id)
            if brokerage is None:
                return ConnectionStatus(ok=False, message="Portfolio is not connected to a brokerage")

            name = brokerage.display_name
            try:
                positions = await self.get_portfolio_positions(portfolio_id)
            except Exception as e:
                app_logger.log_warning(f"{name} connection check failed: {e}")
                return ConnectionStatus(ok=False, message=f"{name} connection failed: {e}")

            return ConnectionStatus(
                ok=True,
                message=f"Connected to {name} ({len(positions)} positions)",
                positions_count=len(positions)
            )

    async def save_schwab_credentials(self, portfolio_id: int, credential: SchwabCredential) -> None:
        """Store tokens from a completed OAuth login and drop cached sessions"""
        await self.store.write_credential(portfolio_id, credential)
        self.cache.invalidate(portfolio_id)
        app_logger.log_info(f"Saved Schwab credentials for portfolio {portfolio_id}")

    async def connect_tradier(self, portfolio_id: int, api_key: str, sandbox: bool = False) -> TradierCredential:
        """Validate an API key by resolving its account, then bind the portfolio to Tradier"""
        broker = self.broker_for(Brokerage.TRADIER)
        account_id = await broker.create_client(api_key, sandbox).get_account_id()
        credential = TradierCredential(api_key=api_key, account_id=account_id, sandbox=sandbox)
        await self.store.write_credential(portfolio_id, credential)
        self.cache.invalidate(portfolio_id)
        app_logger.log_info(f"Connected portfolio {portfolio_id} to Tradier account {account_id}")
        return credential

    async def disconnect(self, portfolio_id: int) -> None:
        await self.store.delete_credentials(portfolio_id)
        self.cache.invalidate(portfolio_id)

    async def execute_for_all_portfolios(self, signals: ProcessedSignals) -> Dict[int, TradeExecutionSummary]:
        """Run execute_trades for every stored portfolio, one after another.

        A configuration error stops only the affected portfolio.
        """
        summaries: Dict[int, TradeExecutionSummary] = {}
        for portfolio in await self.store.list_portfolios():
            try:
                summaries[portfolio.id] = await self.execute_trades(portfolio.id, signals)
            except ConfigurationError as e:
                app_logger.log_error(f"Skipping portfolio {portfolio.id} ({portfolio.name}): {e}")
        return summaries
