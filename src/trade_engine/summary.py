"""Per-batch accumulation of order outcomes"""

from typing import List
from broker_connector_base import SkippedTrade, TradeExecutionResult, TradeExecutionSummary
from trade_engine.logger import AppLogger

app_logger = AppLogger(__name__)

ALL_SYMBOLS = "ALL"


class ExecutionSummaryAggregator:
    """Append-only transcript of one batch.

    Results land in ``successful`` or ``failed`` by their success flag and
    skips in ``skipped``, all in the order they are recorded.
    """

    def __init__(self):
        self.summary = TradeExecutionSummary()

    def record(self, result: TradeExecutionResult) -> None:
        if result.success:
            self.summary.successful.append(result)
            app_logger.log_info(
                f"✓ {result.action} order placed: {result.symbol} - "
                f"{result.shares} shares @ ${result.price:.2f}"
            )
        else:
            self.summary.failed.append(result)
            app_logger.log_error(f"✗ {result.action} order failed: {result.symbol} - {result.error}")

    def skip(self, symbol: str, reason: str) -> None:
        self.summary.skipped.append(SkippedTrade(symbol=symbol, reason=reason))
        app_logger.log_info(f"Skipped {symbol}: {reason}")

    def abort(self, error: str) -> TradeExecutionSummary:
        """Record a batch-level failure as a single synthetic entry and finish"""
        self.summary.failed.append(TradeExecutionResult(
            symbol=ALL_SYMBOLS,
            action='BUY',
            shares=0,
            price=0,
            success=False,
            error=error
        ))
        app_logger.log_error(error)
        return self.finish()

    def finish(self) -> TradeExecutionSummary:
        summary = self.summary
        app_logger.log_info(
            f"Trade execution complete: {len(summary.successful)} successful, "
            f"{len(summary.failed)} failed, {len(summary.skipped)} skipped"
        )
        return summary


def format_summary(summary: TradeExecutionSummary, title: str = "Trade Execution Summary") -> str:
    """Plain-text report for notifications"""
    lines: List[str] = [title, ""]

    if summary.successful:
        lines.append(f"Successful ({len(summary.successful)}):")
        for result in summary.successful:
            order_ref = f" (order {result.order_id})" if result.order_id else ""
            lines.append(f"  • {result.action} {result.shares} {result.symbol} @ ${result.price:.2f}{order_ref}")
        lines.append("")

    if summary.failed:
        lines.append(f"Failed ({len(summary.failed)}):")
        for result in summary.failed:
            lines.append(f"  • {result.action} {result.shares} {result.symbol}: {result.error}")
        lines.append("")

    if summary.skipped:
        lines.append(f"Skipped ({len(summary.skipped)}):")
        for skipped in summary.skipped:
            lines.append(f"  • {skipped.symbol}: {skipped.reason}")
        lines.append("")

    if not (summary.successful or summary.failed or summary.skipped):
        lines.append("No trades attempted")

    return "\n".join(lines).rstrip()
