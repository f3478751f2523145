"""Tests for the Transaction Normalizer driver."""

import logging
from collections import Counter

from ledger_ingestion.adapters import PAYMENT_ADAPTERS, STOCK_ADAPTERS, AdapterContext
from ledger_ingestion.normalizer import normalize
from ledger_kernel.domain.transaction import TransactionKind


class TestNormalize:
    def test_every_stock_source_normalized(self, stock_collections):
        context = AdapterContext.from_collections(stock_collections)
        result = normalize(stock_collections, context, STOCK_ADAPTERS)

        kinds = Counter(tx.kind for tx in result.transactions)
        assert kinds == {
            TransactionKind.IN_RECEIPT: 3,
            TransactionKind.QUALITY_HOLD: 1,
            TransactionKind.REJECTION: 1,
            TransactionKind.PROCESS_CONSUMPTION: 1,
            TransactionKind.OUT_SHIPMENT: 1,
            TransactionKind.TRANSFER_OUT: 1,
            TransactionKind.TRANSFER_IN: 1,
        }
        assert result.errors == ()
        assert result.dropped == {}

    def test_ids_unique_across_sources(self, stock_collections):
        context = AdapterContext.from_collections(stock_collections)
        result = normalize(stock_collections, context)
        ids = [tx.id for tx in result.transactions]
        assert len(ids) == len(set(ids))

    def test_dropped_counted_per_source(self, stock_collections):
        stock_collections["supply_batches"].append({"id": 300, "supply_id": 10, "product_id": 999})
        stock_collections["process_lot_runs"].append({"id": 8, "supply_batch_id": 999})
        context = AdapterContext.from_collections(stock_collections)

        result = normalize(stock_collections, context)

        assert result.dropped == {"supply_batches": 1, "process_lot_runs": 1}
        assert result.dropped_total == 2
        assert len(result.errors_for("process_lot_runs")) == 1

    def test_rows_without_id_dropped(self, stock_collections):
        stock_collections["supply_batches"].extend([
            {"supply_id": 10, "product_id": 1, "accepted_qty": 5, "quality_status": "PASSED"},
            {"id": "  ", "supply_id": 10, "product_id": 1, "accepted_qty": 7, "quality_status": "PASSED"},
        ])
        context = AdapterContext.from_collections(stock_collections)

        result = normalize(stock_collections, context)

        assert result.dropped == {"supply_batches": 2}
        errors = result.errors_for("supply_batches")
        assert [(e.field, e.record_id) for e in errors] == [("id", "?"), ("id", "?")]
        assert not any(tx.id.endswith("-?") for tx in result.transactions)

    def test_payment_adapters(self, payment_collections):
        context = AdapterContext.from_collections(payment_collections)
        result = normalize(payment_collections, context, PAYMENT_ADAPTERS)
        assert [tx.id for tx in result.transactions] == ["payment-1", "payment-2", "payment-3"]

    def test_missing_collections_are_empty(self):
        context = AdapterContext.from_collections({})
        result = normalize({}, context)
        assert result.transactions == ()

    def test_logs_summary(self, stock_collections, caplog):
        context = AdapterContext.from_collections(stock_collections)
        with caplog.at_level(logging.INFO, logger="ledger_kernel"):
            normalize(stock_collections, context)

        summary = [r for r in caplog.records if r.getMessage() == "normalization_completed"]
        assert len(summary) == 1
        assert summary[0].transaction_count == 9
