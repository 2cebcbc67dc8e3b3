# spending/errors.py
# Role: Exception hierarchy shared by the stores, the form controller,
#       the CSV adapter, and the HTTP routes.

"""
Errors raised by the spending services.

Routes translate them into responses:
- FormValidationError / CsvImportError -> inline message, HTTP 400
- TransactionNotFoundError             -> HTTP 404
- PersistenceError                     -> error page, HTTP 500
"""


class SpendingError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(SpendingError):
    """Invalid environment configuration."""


class FormValidationError(SpendingError):
    """Required form fields are missing or unparseable."""


class FormStateError(SpendingError):
    """Form operation attempted in the wrong state (e.g. submit while idle)."""


class PersistenceError(SpendingError):
    """A local or remote write failed; the previous state is retained."""


class TransactionNotFoundError(PersistenceError):
    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction {transaction_id!r} not found")
        self.transaction_id = transaction_id


class DuplicateTransactionError(PersistenceError):
    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction {transaction_id!r} already exists")
        self.transaction_id = transaction_id


class CsvImportError(SpendingError):
    """The uploaded CSV could not be read at all."""
