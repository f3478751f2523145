"""Per-source transaction adapters (pure, no DB)."""

from ledger_ingestion.adapters.base import AdapterContext, TransactionAdapter
from ledger_ingestion.adapters.payments import SupplyPaymentAdapter
from ledger_ingestion.adapters.process_lot_runs import ProcessLotRunAdapter
from ledger_ingestion.adapters.shipments import ShipmentItemAdapter
from ledger_ingestion.adapters.supply_batches import SupplyBatchAdapter
from ledger_ingestion.adapters.transfers import StockTransferAdapter

STOCK_ADAPTERS: tuple[TransactionAdapter, ...] = (
    SupplyBatchAdapter(),
    ProcessLotRunAdapter(),
    ShipmentItemAdapter(),
    StockTransferAdapter(),
)

PAYMENT_ADAPTERS: tuple[TransactionAdapter, ...] = (
    SupplyPaymentAdapter(),
)

__all__ = [
    "AdapterContext",
    "TransactionAdapter",
    "SupplyBatchAdapter",
    "ProcessLotRunAdapter",
    "ShipmentItemAdapter",
    "StockTransferAdapter",
    "SupplyPaymentAdapter",
    "STOCK_ADAPTERS",
    "PAYMENT_ADAPTERS",
]
