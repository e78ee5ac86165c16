from .reconciler import PositionReconciler, NO_POSITION_REASON
from .models import ReconciliationPlan, Decision
from broker_connector_base import PlannedOrder, SkippedTrade, ProcessedSignals, TradeSignal

__version__ = "1.0.0"

__all__ = [
    "PositionReconciler",
    "NO_POSITION_REASON",
    "ReconciliationPlan",
    "Decision",
    "PlannedOrder",
    "SkippedTrade",
    "ProcessedSignals",
    "TradeSignal",
    "__version__",
]
