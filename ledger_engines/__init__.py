"""
Pure calculation engines for the supply ledger.

Engines have no I/O and no state between invocations:
- keying: aggregation keys (``product:warehouse`` and ``supply``)
- quality_hold: inferred held quantities for batches on hold
- reducer: chronological fold into running balances and positions
- classifier: threshold and settlement status flags
"""

from ledger_engines.classifier import (
    ClassifiedPaymentPosition,
    ClassifiedStockPosition,
    PaymentStatus,
    SettlementState,
    StockStatus,
    StockThreshold,
    classify_payment,
    classify_payment_positions,
    classify_stock,
    classify_stock_positions,
    is_within_coverage,
    threshold_errors,
)
from ledger_engines.keying import (
    UNASSIGNED,
    AccountKeyer,
    StockKey,
    payment_account_key,
    stock_account_key,
)
from ledger_engines.quality_hold import HoldPolicy, infer_hold_quantity, receipt_quantity
from ledger_engines.reducer import (
    PaymentLedger,
    PaymentPosition,
    RunningBalanceEntry,
    StockLedger,
    StockPosition,
    reduce_payment_account,
    reduce_payment_ledgers,
    reduce_stock_account,
    reduce_stock_ledgers,
)

__all__ = [
    # Keying
    "UNASSIGNED",
    "AccountKeyer",
    "StockKey",
    "payment_account_key",
    "stock_account_key",
    # Quality hold
    "HoldPolicy",
    "infer_hold_quantity",
    "receipt_quantity",
    # Reducer
    "RunningBalanceEntry",
    "StockPosition",
    "PaymentPosition",
    "StockLedger",
    "PaymentLedger",
    "reduce_stock_account",
    "reduce_payment_account",
    "reduce_stock_ledgers",
    "reduce_payment_ledgers",
    # Classifier
    "StockThreshold",
    "StockStatus",
    "PaymentStatus",
    "SettlementState",
    "ClassifiedStockPosition",
    "ClassifiedPaymentPosition",
    "classify_stock",
    "classify_payment",
    "classify_stock_positions",
    "classify_payment_positions",
    "is_within_coverage",
    "threshold_errors",
]
