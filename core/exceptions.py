"""Typed exceptions for ledger failures."""


class LedgerError(Exception):
    """Base class for service ledger errors."""


class ValidationError(LedgerError):
    """
    User input fails a business rule.

    Always recoverable. The ledger is left unmodified and the message is
    shown next to the offending form field.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ConflictError(LedgerError):
    """
    An entry's business vertical does not match its target ledger.

    Integration fault: the context router should never let this happen.
    Fatal to the operation, never to the process.
    """

    def __init__(self, entry_vertical, ledger_vertical):
        self.entry_vertical = entry_vertical
        self.ledger_vertical = ledger_vertical
        super().__init__(
            f"Entry vertical '{getattr(entry_vertical, 'value', entry_vertical)}' "
            f"does not match ledger vertical '{getattr(ledger_vertical, 'value', ledger_vertical)}'"
        )


class PersistenceError(LedgerError):
    """
    Save or load against the persistence store failed.

    In-memory state is retained. The operator is warned that the change
    is not durable.
    """

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)
