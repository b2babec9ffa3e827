"""Domain errors raised by the ledger, reservations and order lifecycle.

Every error carries the identifiers a caller needs to decide what to do
next, so the request layer can map each kind to its own response.
"""


class StockflowError(Exception):
    """Base class for all domain errors."""


class InsufficientStock(StockflowError):
    """A stock adjustment would drive a product's quantity below zero."""

    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product ID {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )


class ProductNotFound(StockflowError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} was not found.")


class OrderNotFound(StockflowError):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order with ID {order_id} was not found.")


class InvalidTransition(StockflowError):
    """An order status change that the lifecycle does not allow."""

    def __init__(self, order_id: int, current_status: str, attempted: str):
        self.order_id = order_id
        self.current_status = current_status
        self.attempted = attempted
        super().__init__(
            f"Cannot move order {order_id} from {current_status} to {attempted}"
        )


class ConcurrencyConflict(StockflowError):
    """A versioned write lost to a concurrent writer.

    Raised by the ledger once its retries are exhausted, and by the order
    store on the first lost write. Callers may retry the whole operation.
    """

    def __init__(self, entity: str, entity_id: int, attempts: int = 1):
        self.entity = entity
        self.entity_id = entity_id
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of {entity} {entity_id} "
            f"(gave up after {attempts} attempt(s))"
        )


class ProductInUse(StockflowError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(
            f"Cannot delete product {product_id} because it is referenced "
            "in one or more orders."
        )


class InvalidOrder(StockflowError, ValueError):
    """Order input failed validation before any stock was touched."""


class InvalidProduct(StockflowError, ValueError):
    """Product input failed validation."""


class NotificationError(StockflowError):
    def __init__(self, order_id: int, reason: str):
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Notification for order {order_id} failed: {reason}")
