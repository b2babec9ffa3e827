"""State management modules."""

from stockflow.state.manager import StateManager
from stockflow.state.workflow import OrderTransitions

__all__ = ["StateManager", "OrderTransitions"]
