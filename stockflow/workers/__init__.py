"""Background workers."""

from stockflow.workers.fulfillment import FulfillmentScheduler

__all__ = ["FulfillmentScheduler"]
