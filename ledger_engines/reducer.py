"""
Module: ledger_engines.reducer
Responsibility:
    Fold the transactions of one account, in chronological order, into a
    running-balance sequence and a final position.  Stock accounts
    (``product:warehouse``) yield a ``StockPosition``; payment accounts
    (supply documents) yield a ``PaymentPosition``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel and sibling engine modules.

Invariants enforced:
    - Ordering: transactions are stably sorted by ``(occurred_at, id)``
      with numeric-aware id comparison, so any permutation of the same
      input produces the same entries and position.
    - Sign convention: ``ledger_kernel.domain.transaction.SIGN_CONVENTION``.
      QUALITY_HOLD accumulates into ``on_hold`` and REJECTION into
      ``rejected_total``; neither moves the primary balance.
    - Opening balance: 0 for stock accounts, ``expected_total`` for payment
      accounts (payments count down).
    - Precision: accumulation is full-precision Decimal; only emitted
      values are rounded (``round_output``).
    - ``available = max(on_hand - on_hold, 0)``.  The payment running
      balance is never clamped; ``outstanding`` is the clamped view.
    - Fail-soft: a non-finite quantity counts as zero.  The reducer never
      rejects or raises for an individual transaction.
    - The incremental fold (``FoldState.step``) and the batch fold produce
      the same final state.

Audit relevance:
    Every account reduction is traced via ``@traced_engine``; running
    balance entries carry the full transaction for drill-through.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from ledger_kernel.domain.transaction import (
    SIGN_CONVENTION,
    Transaction,
    TransactionKind,
)
from ledger_kernel.domain.values import ZERO, finite_or_zero, natural_key, round_output
from ledger_kernel.logging_config import get_logger
from ledger_engines.keying import split_stock_account_key
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.reducer")


# ---------------------------------------------------------------------------
# Ordering and deltas
# ---------------------------------------------------------------------------


def sort_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Chronological order with id tie-break; independent of input order."""
    return sorted(transactions, key=lambda tx: tx.sort_key)


def signed_delta(transaction: Transaction) -> Decimal:
    """Effect of ``transaction`` on the primary balance."""
    return finite_or_zero(transaction.quantity) * SIGN_CONVENTION[transaction.kind]


def group_by_account(transactions: Iterable[Transaction]) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = defaultdict(list)
    for tx in transactions:
        grouped[tx.account_key].append(tx)
    return dict(grouped)


def _account_order(account_key: str) -> tuple:
    return (natural_key(account_key), account_key)


# ---------------------------------------------------------------------------
# Output types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunningBalanceEntry:
    """One transaction with the account balance right after it."""

    transaction: Transaction
    delta: Decimal
    balance_after: Decimal
    on_hold_after: Decimal = ZERO


@dataclass(frozen=True)
class StockPosition:
    """
    Point-in-time snapshot of a product+warehouse account.

    Guarantees:
        - ``available >= 0`` even when ``on_hold > on_hand``.
        - All quantities rounded to two decimal places.
    """

    account_key: str
    product_id: str
    warehouse_id: str | None
    on_hand: Decimal
    on_hold: Decimal
    available: Decimal
    inbound_total: Decimal = ZERO
    outbound_total: Decimal = ZERO
    rejected_total: Decimal = ZERO
    transaction_count: int = 0
    last_movement_at: datetime | None = None

    @property
    def is_unassigned(self) -> bool:
        """True for the quarantined bucket of records without a warehouse."""
        return self.warehouse_id is None


@dataclass(frozen=True)
class PaymentPosition:
    """
    Point-in-time snapshot of a supply-document payment account.

    ``balance`` is ``expected_total - paid_total`` and may be negative;
    ``outstanding`` and ``overpaid`` are its clamped halves.
    """

    account_key: str
    expected_total: Decimal
    paid_total: Decimal
    balance: Decimal
    outstanding: Decimal
    overpaid: Decimal
    payment_count: int = 0
    last_paid_at: datetime | None = None


@dataclass(frozen=True)
class StockLedger:
    account_key: str
    entries: tuple[RunningBalanceEntry, ...]
    position: StockPosition


@dataclass(frozen=True)
class PaymentLedger:
    account_key: str
    entries: tuple[RunningBalanceEntry, ...]
    position: PaymentPosition


# ---------------------------------------------------------------------------
# Fold states
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockFoldState:
    """Full-precision accumulator of a stock account; ``step`` returns a new state."""

    balance: Decimal = ZERO
    on_hold: Decimal = ZERO
    inbound: Decimal = ZERO
    outbound: Decimal = ZERO
    rejected: Decimal = ZERO
    count: int = 0
    last_at: datetime | None = None

    def step(self, transaction: Transaction) -> StockFoldState:
        quantity = finite_or_zero(transaction.quantity)
        kind = transaction.kind
        return replace(
            self,
            balance=self.balance + signed_delta(transaction),
            on_hold=self.on_hold + (quantity if kind is TransactionKind.QUALITY_HOLD else ZERO),
            inbound=self.inbound + (quantity if transaction.is_inbound else ZERO),
            outbound=self.outbound + (quantity if transaction.is_outbound else ZERO),
            rejected=self.rejected + (quantity if kind is TransactionKind.REJECTION else ZERO),
            count=self.count + 1,
            last_at=_later(self.last_at, transaction.occurred_at),
        )

    def to_position(self, account_key: str) -> StockPosition:
        product_id, warehouse_id = split_stock_account_key(account_key)
        available = max(self.balance - self.on_hold, ZERO)
        return StockPosition(
            account_key=account_key,
            product_id=product_id,
            warehouse_id=warehouse_id,
            on_hand=round_output(self.balance),
            on_hold=round_output(self.on_hold),
            available=round_output(available),
            inbound_total=round_output(self.inbound),
            outbound_total=round_output(self.outbound),
            rejected_total=round_output(self.rejected),
            transaction_count=self.count,
            last_movement_at=self.last_at,
        )


@dataclass(frozen=True)
class PaymentFoldState:
    """Full-precision accumulator of a payment account."""

    expected_total: Decimal = ZERO
    balance: Decimal = ZERO
    paid: Decimal = ZERO
    count: int = 0
    last_at: datetime | None = None

    @classmethod
    def opening(cls, expected_total: Decimal) -> PaymentFoldState:
        expected = finite_or_zero(expected_total)
        return cls(expected_total=expected, balance=expected)

    def step(self, transaction: Transaction) -> PaymentFoldState:
        is_payment = transaction.kind is TransactionKind.PAYMENT
        quantity = finite_or_zero(transaction.quantity)
        return replace(
            self,
            balance=self.balance + signed_delta(transaction),
            paid=self.paid + (quantity if is_payment else ZERO),
            count=self.count + (1 if is_payment else 0),
            last_at=_later(self.last_at, transaction.occurred_at) if is_payment else self.last_at,
        )

    def to_position(self, account_key: str) -> PaymentPosition:
        return PaymentPosition(
            account_key=account_key,
            expected_total=round_output(self.expected_total),
            paid_total=round_output(self.paid),
            balance=round_output(self.balance),
            outstanding=round_output(max(self.balance, ZERO)),
            overpaid=round_output(max(-self.balance, ZERO)),
            payment_count=self.count,
            last_paid_at=self.last_at,
        )


def _later(current: datetime | None, candidate: datetime) -> datetime:
    if current is None or candidate > current:
        return candidate
    return current


# ---------------------------------------------------------------------------
# Account reducers
# ---------------------------------------------------------------------------


@traced_engine("ledger_reducer", "1.0", fingerprint_fields=("account_key",))
def reduce_stock_account(
    *,
    account_key: str,
    transactions: Iterable[Transaction],
) -> StockLedger:
    """
    Fold one stock account.

    Preconditions:
        Every transaction belongs to ``account_key``.
    Postconditions:
        ``entries`` are in ``(occurred_at, id)`` order and the last entry's
        ``balance_after`` equals ``position.on_hand``.
    """
    state = StockFoldState()
    entries: list[RunningBalanceEntry] = []
    for tx in sort_transactions(transactions):
        state = state.step(tx)
        entries.append(RunningBalanceEntry(
            transaction=tx,
            delta=round_output(signed_delta(tx)),
            balance_after=round_output(state.balance),
            on_hold_after=round_output(state.on_hold),
        ))

    return StockLedger(
        account_key=account_key,
        entries=tuple(entries),
        position=state.to_position(account_key),
    )


@traced_engine("ledger_reducer", "1.0", fingerprint_fields=("account_key", "expected_total"))
def reduce_payment_account(
    *,
    account_key: str,
    transactions: Iterable[Transaction],
    expected_total: Decimal = ZERO,
) -> PaymentLedger:
    """
    Fold one payment account, counting down from ``expected_total``.

    Payments that drive the balance below zero are reduced like any other;
    rejecting them is the caller's validation concern.
    """
    state = PaymentFoldState.opening(expected_total)
    entries: list[RunningBalanceEntry] = []
    for tx in sort_transactions(transactions):
        state = state.step(tx)
        entries.append(RunningBalanceEntry(
            transaction=tx,
            delta=round_output(signed_delta(tx)),
            balance_after=round_output(state.balance),
        ))

    return PaymentLedger(
        account_key=account_key,
        entries=tuple(entries),
        position=state.to_position(account_key),
    )


def reduce_stock_ledgers(transactions: Iterable[Transaction]) -> dict[str, StockLedger]:
    """Reduce every stock account observed in ``transactions``, keyed by account."""
    grouped = group_by_account(transactions)
    ledgers = {
        key: reduce_stock_account(account_key=key, transactions=grouped[key])
        for key in sorted(grouped, key=_account_order)
    }
    logger.info("stock_ledgers_reduced", extra={
        "account_count": len(ledgers),
        "transaction_count": sum(len(txs) for txs in grouped.values()),
    })
    return ledgers


def reduce_payment_ledgers(
    transactions: Iterable[Transaction],
    expected_totals: Mapping[str, Decimal] | None = None,
    account_keys: Iterable[str] = (),
) -> dict[str, PaymentLedger]:
    """
    Reduce every payment account.

    Accounts are the union of keys observed in ``transactions``, keys with
    an expected total, and ``account_keys`` (every known supply), so an
    invoiced supply without payments still reports its outstanding balance
    and an untouched one reports no activity.
    """
    expected_totals = expected_totals or {}
    grouped = group_by_account(transactions)
    keys = sorted(set(grouped) | set(expected_totals) | set(account_keys), key=_account_order)
    ledgers = {
        key: reduce_payment_account(
            account_key=key,
            transactions=grouped.get(key, ()),
            expected_total=expected_totals.get(key, ZERO),
        )
        for key in keys
    }
    logger.info("payment_ledgers_reduced", extra={
        "account_count": len(ledgers),
        "transaction_count": sum(len(txs) for txs in grouped.values()),
    })
    return ledgers
