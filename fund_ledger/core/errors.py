"""
Ledger error taxonomy.

Every error carries a user-facing message (surfaced verbatim by the API)
and the HTTP status the request boundary answers with.
"""


class LedgerError(Exception):
    """Base class for all ledger and pricing errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Raised on bad input shape or range (non-positive amount, price, shares)"""
    status_code = 400


class NotFoundError(LedgerError):
    """Raised for an unknown client, fund or position"""
    status_code = 404


class AuthorizationError(LedgerError):
    """Raised when a caller attempts an operation it is not entitled to"""
    status_code = 403


class InsufficientFundsError(LedgerError):
    """Raised when cash balance does not cover a buy"""
    status_code = 400


class InsufficientSharesError(LedgerError):
    """Raised when a sell exceeds the shares held"""
    status_code = 400


class PricingError(LedgerError):
    """Raised when a fund has no usable NAV"""
    status_code = 503


class ConflictError(LedgerError):
    """Raised when a record already exists (duplicate registration)"""
    status_code = 409


class ConcurrencyError(LedgerError):
    """Raised when a per-entity lock cannot be acquired in time"""
    status_code = 409
