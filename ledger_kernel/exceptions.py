"""
Typed exception hierarchy for the ledger kernel.

Every error has a typed class (catch by type, not message), a ``code``
class attribute (machine-readable) and structured attributes (not just a
message string).

Most of these errors are *soft*: the engine records them next to its
best-effort result instead of raising them, so a monitoring dashboard
degrades instead of going blank.  Only the caller-side payment checks and
the configuration loader raise.

    LedgerKernelError (base)
    |
    +-- SourceError
    |   +-- SourceFetchError            (recorded, empty collection used)
    |   +-- UnresolvedJoinError         (recorded, "none" bucket used)
    |   +-- MalformedTransactionError   (recorded, value coerced to 0)
    |
    +-- ThresholdError
    |   +-- InvalidThresholdConfigurationError  (recorded, not configured)
    |
    +-- PaymentError
    |   +-- OverpaymentAttemptError     (raised by caller-side check)
    |   +-- InvalidPaymentAmountError   (raised by caller-side check)
    |
    +-- ConfigurationError              (raised by ledger_config)

Error codes - quick reference

Category   | Code                   | When
-----------|------------------------|----------------------------------------
Source     | SOURCE_FETCH_FAILED    | A collection could not be retrieved
           | UNRESOLVED_JOIN        | Foreign key not found in a lookup
           | MALFORMED_TRANSACTION  | Non-finite, non-numeric or missing field
Threshold  | INVALID_THRESHOLD      | Negative reorder point / safety stock
Payment    | OVERPAYMENT_ATTEMPT    | Amount exceeds the outstanding balance
           | INVALID_PAYMENT_AMOUNT | Amount is not a positive number
Config     | CONFIGURATION_ERROR    | YAML value missing or invalid
"""

from decimal import Decimal


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a ``code`` class attribute and a ``source`` tag
    naming the collection (or component) the error belongs to.
    """

    code: str = "LEDGER_KERNEL_ERROR"
    source: str = ""


# Source-level errors


class SourceError(LedgerKernelError):
    """Base exception for errors tied to an upstream source collection."""

    code: str = "SOURCE_ERROR"


class SourceFetchError(SourceError):
    """An upstream collection could not be retrieved."""

    code: str = "SOURCE_FETCH_FAILED"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class UnresolvedJoinError(SourceError):
    """A foreign key referenced an entity missing from its lookup."""

    code: str = "UNRESOLVED_JOIN"

    def __init__(self, source: str, record_id: str, target: str, target_id: object):
        self.source = source
        self.record_id = record_id
        self.target = target
        self.target_id = target_id
        super().__init__(
            f"{source} #{record_id}: {target} {target_id!r} not found"
        )


class MalformedTransactionError(SourceError):
    """A record carried a non-finite, non-numeric or missing field."""

    code: str = "MALFORMED_TRANSACTION"

    def __init__(self, source: str, record_id: str, field: str, value: object):
        self.source = source
        self.record_id = record_id
        self.field = field
        self.value = value
        super().__init__(
            f"{source} #{record_id}: malformed {field} {value!r}"
        )


# Threshold errors


class ThresholdError(LedgerKernelError):
    """Base exception for threshold configuration errors."""

    code: str = "THRESHOLD_ERROR"


class InvalidThresholdConfigurationError(ThresholdError):
    """A threshold is negative; treated as not configured."""

    code: str = "INVALID_THRESHOLD"

    def __init__(self, product_id: object, threshold: str, value: Decimal):
        self.source = "products"
        self.product_id = product_id
        self.threshold = threshold
        self.value = value
        super().__init__(
            f"Product {product_id!r}: {threshold} {value} is negative"
        )


# Payment errors


class PaymentError(LedgerKernelError):
    """Base exception for caller-side payment validation."""

    code: str = "PAYMENT_ERROR"


class OverpaymentAttemptError(PaymentError):
    """A payment amount exceeds the account's outstanding balance."""

    code: str = "OVERPAYMENT_ATTEMPT"

    def __init__(
        self,
        account_key: str,
        amount: Decimal,
        outstanding: Decimal,
        payment_id: str | None = None,
    ):
        self.source = "supply_payments"
        self.account_key = account_key
        self.amount = amount
        self.outstanding = outstanding
        self.payment_id = payment_id
        super().__init__(
            f"Amount {amount} exceeds the outstanding balance {outstanding} "
            f"for supply {account_key}"
        )


class InvalidPaymentAmountError(PaymentError):
    """A payment amount is not a positive, finite number."""

    code: str = "INVALID_PAYMENT_AMOUNT"

    def __init__(self, account_key: str, amount: object):
        self.source = "supply_payments"
        self.account_key = account_key
        self.amount = amount
        super().__init__(f"Invalid payment amount {amount!r} for supply {account_key}")


# Configuration errors


class ConfigurationError(LedgerKernelError):
    """A configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.source = "ledger_config"
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration {key!r}: {reason}")
