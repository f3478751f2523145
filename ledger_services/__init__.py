"""
Ledger services -- imperative shell around the pure pipeline.

Concurrent source fetch, stock and payment ledger orchestration,
caller-side payment checks, and the view projector.
"""

from ledger_services.fetch import FetchResult, fan_out_fetch
from ledger_services.payment_ledger_service import (
    PaymentLedgerResult,
    PaymentLedgerService,
    check_payment_amount,
    compute_payment_ledger,
    expected_totals_from_lines,
    find_overpayments,
)
from ledger_services.projector import (
    count_low_stock,
    needs_attention,
    project_movement_rows,
    project_payment_history,
    project_payment_rows,
    project_stock_rows,
)
from ledger_services.stock_ledger_service import (
    StockLedgerResult,
    StockLedgerService,
    compute_stock_ledger,
)

__all__ = [
    "FetchResult",
    "fan_out_fetch",
    "StockLedgerResult",
    "StockLedgerService",
    "compute_stock_ledger",
    "PaymentLedgerResult",
    "PaymentLedgerService",
    "compute_payment_ledger",
    "expected_totals_from_lines",
    "check_payment_amount",
    "find_overpayments",
    "project_stock_rows",
    "project_movement_rows",
    "project_payment_rows",
    "project_payment_history",
    "needs_attention",
    "count_low_stock",
]
