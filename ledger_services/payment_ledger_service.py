"""
PaymentLedgerService -- what is owed and paid on each supply document.

Payments count down from an expected total per supply.  The expected
total is the caller's figure; ``expected_totals_from_lines`` derives it
from the supply lines (unit price times accepted quantity).

Architecture: ledger_services -- imperative shell.

Invariants enforced:
    - The reducer never rejects a payment.  Overpayments are found after
      the fold by ``find_overpayments`` and reported as soft errors.
    - ``check_payment_amount`` is the pre-condition a caller runs before
      recording a new payment; it raises instead of recording.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from ledger_config import get_active_config
from ledger_config.schema import LedgerConfig
from ledger_engines.classifier import ClassifiedPaymentPosition, classify_payment_positions
from ledger_engines.reducer import (
    PaymentFoldState,
    PaymentLedger,
    PaymentPosition,
    reduce_payment_ledgers,
)
from ledger_ingestion.adapters import PAYMENT_ADAPTERS, AdapterContext
from ledger_ingestion.domain.types import PAYMENT_COLLECTIONS, SUPPLY_LINES
from ledger_ingestion.normalizer import normalize
from ledger_kernel.domain.lookup import Lookups
from ledger_kernel.domain.transaction import TransactionKind
from ledger_kernel.domain.values import ZERO, coerce_decimal, normalize_id, parse_decimal, round_output
from ledger_kernel.exceptions import (
    InvalidPaymentAmountError,
    LedgerKernelError,
    OverpaymentAttemptError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.source_selector import SourceReader
from ledger_services.fetch import fan_out_fetch

logger = get_logger("services.payment_ledger")


# ---------------------------------------------------------------------------
# Caller-side helpers
# ---------------------------------------------------------------------------


def expected_totals_from_lines(lines: Iterable[Mapping[str, Any]]) -> dict[str, Decimal]:
    """Sum of ``unit_price * accepted_qty`` per supply; unusable numbers count as zero."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for line in lines:
        supply_id = normalize_id(line.get("supply_id"))
        if supply_id is None:
            continue
        totals[supply_id] += coerce_decimal(line.get("unit_price")) * coerce_decimal(
            line.get("accepted_qty")
        )
    return dict(totals)


def check_payment_amount(position: PaymentPosition, amount: Any) -> Decimal:
    """
    Validate a proposed payment against the account's current position.

    Returns the amount as a Decimal.

    Raises:
        InvalidPaymentAmountError: amount is missing, non-numeric or not positive.
        OverpaymentAttemptError: amount exceeds the outstanding balance.
    """
    value = parse_decimal(amount)
    if value is None or value <= ZERO:
        raise InvalidPaymentAmountError(position.account_key, amount)
    if value > position.outstanding:
        raise OverpaymentAttemptError(position.account_key, value, position.outstanding)
    return value


def find_overpayments(
    ledger: PaymentLedger,
    expected_total: Decimal | None = None,
) -> tuple[OverpaymentAttemptError, ...]:
    """
    Payments that exceeded the outstanding balance at the time they were made.

    Re-folds the ledger's transactions at full precision from
    ``expected_total`` (the position's rounded figure when not given).  A
    payment is flagged when the excess over the clamped balance just before
    it is still positive after output rounding, so a supply paid exactly
    its expected total is never flagged.
    """
    flagged = []
    if expected_total is None:
        expected_total = ledger.position.expected_total
    state = PaymentFoldState.opening(expected_total)
    for entry in ledger.entries:
        transaction = entry.transaction
        outstanding = max(state.balance, ZERO)
        if transaction.kind is TransactionKind.PAYMENT:
            if round_output(transaction.amount - outstanding) > ZERO:
                flagged.append(OverpaymentAttemptError(
                    ledger.account_key,
                    round_output(transaction.amount),
                    round_output(outstanding),
                    payment_id=transaction.id,
                ))
        state = state.step(transaction)
    return tuple(flagged)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentLedgerResult:
    """Best-effort payment positions plus everything that degraded them."""

    positions: dict[str, ClassifiedPaymentPosition]
    ledgers: dict[str, PaymentLedger]
    lookups: Lookups
    errors: tuple[LedgerKernelError, ...] = ()
    dropped: Mapping[str, int] = field(default_factory=dict)

    @property
    def overpayments(self) -> tuple[OverpaymentAttemptError, ...]:
        return tuple(e for e in self.errors if isinstance(e, OverpaymentAttemptError))

    def errors_for(self, source: str) -> tuple[LedgerKernelError, ...]:
        return tuple(e for e in self.errors if e.source == source)


def compute_payment_ledger(
    collections: Mapping[str, Iterable[Mapping[str, Any]]],
    config: LedgerConfig | None = None,
    *,
    expected_totals: Mapping[str, Decimal] | None = None,
    fallback_time: datetime | None = None,
    fetch_errors: Iterable[LedgerKernelError] = (),
) -> PaymentLedgerResult:
    """
    Derive every payment position from already-fetched collections.

    ``expected_totals`` defaults to ``expected_totals_from_lines`` over the
    ``supply_lines`` collection.  Every row of ``supplies`` gets an account,
    paid or not.
    """
    config = config or LedgerConfig()
    collections = {name: list(rows) for name, rows in collections.items()}
    if expected_totals is None:
        expected_totals = expected_totals_from_lines(collections.get(SUPPLY_LINES, ()))

    context = AdapterContext.from_collections(
        collections,
        hold_policy=config.quality_hold.to_policy(),
        fallback_time=fallback_time,
    )
    normalized = normalize(collections, context, PAYMENT_ADAPTERS)
    ledgers = reduce_payment_ledgers(
        normalized.transactions,
        expected_totals,
        account_keys=context.lookups.supplies.ids(),
    )
    positions = classify_payment_positions(
        positions={key: ledger.position for key, ledger in ledgers.items()},
    )

    errors: list[LedgerKernelError] = [*fetch_errors, *normalized.errors]
    for key, ledger in ledgers.items():
        errors.extend(find_overpayments(ledger, expected_totals.get(key, ZERO)))

    logger.info("payment_ledger_computed", extra={
        "account_count": len(positions),
        "error_count": len(errors),
        "dropped_count": normalized.dropped_total,
    })
    return PaymentLedgerResult(
        positions=positions,
        ledgers=ledgers,
        lookups=context.lookups,
        errors=tuple(errors),
        dropped=dict(normalized.dropped),
    )


class PaymentLedgerService:
    """Service that fetches the payment sources and derives positions.

    Non-goals:
        - Does NOT record payments; ``check_payment_amount`` is for the
          caller that does.
    """

    def __init__(self, reader: SourceReader, config: LedgerConfig | None = None) -> None:
        self._reader = reader
        self._config = config or get_active_config()

    def compute(
        self,
        expected_totals: Mapping[str, Decimal] | None = None,
        fallback_time: datetime | None = None,
    ) -> PaymentLedgerResult:
        with LogContext.bind(trace_id=str(uuid4())):
            fetched = fan_out_fetch(
                self._reader,
                PAYMENT_COLLECTIONS,
                max_workers=self._config.fetch.max_workers,
                timeout=self._config.fetch.timeout_seconds,
            )
            return compute_payment_ledger(
                fetched.collections,
                self._config,
                expected_totals=expected_totals,
                fallback_time=fallback_time,
                fetch_errors=fetched.errors,
            )
