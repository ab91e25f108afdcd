class LedgerError(Exception):
    """Base class for rejected ledger operations"""
    pass


class NotFoundError(LedgerError):
    """Raised when a referenced sale, item, customer or inventory record is missing"""
    pass


class InsufficientStockError(LedgerError):
    """Raised when a debit would drive an inventory record below zero"""

    def __init__(self, item_name: str, available: int, requested: int):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {available}, Requested: {requested}"
        )


class ValidationError(LedgerError):
    """Raised when a sale carries a non-positive quantity or a negative price"""
    pass


class ConflictError(LedgerError):
    """Raised when a concurrent modification is detected and retries are exhausted"""
    pass
