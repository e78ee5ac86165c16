"""Signal-versus-position reconciliation"""

from typing import Iterable, Optional
import logging
from broker_connector_base import PlannedOrder, PositionMap, ProcessedSignals, SkippedTrade, TradeSignal
from .models import ReconciliationPlan

NO_POSITION_REASON = "No position to exit"


class PositionReconciler:
    """Decide buy, sell or skip for each signal against one position snapshot"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def reconcile(self, signals: ProcessedSignals, positions: PositionMap) -> ReconciliationPlan:
        """
        Build the order plan for a batch.

        Holding any amount of an enter-signal symbol is enough to skip it.
        Exit signals sell the full live quantity, not the requested one, so a
        stale signal can never sell more than is held. ``positions`` is read
        only.
        """
        plan = ReconciliationPlan()
        plan.decisions.extend(self._reconcile_entries(signals.enter_signals, positions))
        plan.decisions.extend(self._reconcile_exits(signals.exit_signals, positions))

        self.logger.info(
            f"Reconciled {len(signals.enter_signals) + len(signals.exit_signals)} signals: "
            f"{len(plan.orders)} orders, {len(plan.skipped)} skipped"
        )
        return plan

    def _reconcile_entries(self, signals: Iterable[TradeSignal], positions: PositionMap):
        for signal in signals:
            position = positions.get(signal.symbol)
            if position and position.long_quantity > 0:
                self.logger.debug(f"Skipping BUY {signal.symbol}: holding {position.long_quantity} shares")
                yield SkippedTrade(
                    symbol=signal.symbol,
                    reason=f"Already holding {position.long_quantity} shares"
                )
                continue

            yield PlannedOrder(
                symbol=signal.symbol,
                action='BUY',
                shares=signal.shares,
                price=signal.price
            )

    def _reconcile_exits(self, signals: Iterable[TradeSignal], positions: PositionMap):
        for signal in signals:
            position = positions.get(signal.symbol)
            if not position or position.long_quantity == 0:
                yield SkippedTrade(symbol=signal.symbol, reason=NO_POSITION_REASON)
                continue

            if signal.shares and signal.shares != position.long_quantity:
                self.logger.info(
                    f"Selling held quantity for {signal.symbol}: {position.long_quantity} shares "
                    f"(signal requested {signal.shares})"
                )

            yield PlannedOrder(
                symbol=signal.symbol,
                action='SELL',
                shares=position.long_quantity,
                price=signal.price
            )
