"""Accounting error taxonomy.

Every error carries a stable ``code`` that the HTTP layer returns as
``error_code`` next to the human readable detail.
"""


class AccountingError(Exception):
    """Base class for waste accounting failures."""

    code = "ACCOUNTING_ERROR"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(AccountingError):
    """Malformed daily entry. Nothing is persisted."""

    code = "VALIDATION_FAILED"


class PreconditionError(AccountingError):
    """Lifecycle guard violation on close or transfer."""

    code = "PRECONDITION_FAILED"


class ImmutableLedgerError(AccountingError):
    """Entry recorded against a month already transferred to the official ledger."""

    code = "MONTH_TRANSFERRED"


class BridgeError(AccountingError):
    """Official ledger write failed. The month stays closed and transfer can be retried."""

    code = "OFFICIAL_LEDGER_UNAVAILABLE"


class TenantNotFoundError(AccountingError):
    """Tenant id unknown to the directory or not active."""

    code = "TENANT_NOT_FOUND"
