"""Order lifecycle state machine."""

from stockflow.models.order import OrderStatus


class OrderTransitions:
    """Valid order status transitions."""

    TRANSITIONS = {
        OrderStatus.PENDING_FULFILLMENT: [
            OrderStatus.FULFILLED,
            OrderStatus.CANCELED,
        ],
        # Terminal
        OrderStatus.FULFILLED: [],
        OrderStatus.CANCELED: [],
    }

    @classmethod
    def can_transition(cls, from_state: OrderStatus, to_state: OrderStatus) -> bool:
        """Check if a state transition is valid."""
        return to_state in cls.TRANSITIONS.get(from_state, [])
