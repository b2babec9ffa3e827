"""API routes for products, reservations and orders."""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from stockflow.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    InvalidOrder,
    InvalidProduct,
    InvalidTransition,
    NotificationError,
    OrderNotFound,
    ProductInUse,
    ProductNotFound,
    StockflowError,
)
from stockflow.models import (
    Order,
    OrderItemRequest,
    OrderStatus,
    Product,
    ProductCreate,
    ProductUpdate,
    Reservation,
    ReservationReceipt,
    StockValidation,
)
from stockflow.services.container import ServiceContainer
from stockflow.services.reservations import ReservationManager
from stockflow.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


# Request/Response Models


class ReserveRequest(BaseModel):
    """Request to hold stock for the current session."""

    product_id: int
    quantity: int


class ReleaseResponse(BaseModel):
    reservation_id: str
    released: bool


class RestockRequest(BaseModel):
    quantity: int


class StockLevelResponse(BaseModel):
    product_id: int
    stock_quantity: int


class PlaceOrderRequest(BaseModel):
    """Order submission; items may reference session reservations."""

    items: list[OrderItemRequest]


# Dependencies


def get_container(request: Request) -> ServiceContainer:
    """Service container built by the application lifespan."""
    return request.app.state.container


def get_reservations(
    x_session_id: str = Header(..., description="Client session identifier"),
    container: ServiceContainer = Depends(get_container),
) -> ReservationManager:
    """Reservation manager for the caller's session."""
    return container.reservations_for(x_session_id)


# Error mapping


ERROR_STATUS: dict[type[StockflowError], int] = {
    ProductNotFound: status.HTTP_404_NOT_FOUND,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_400_BAD_REQUEST,
    InvalidOrder: status.HTTP_400_BAD_REQUEST,
    InvalidProduct: status.HTTP_400_BAD_REQUEST,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ConcurrencyConflict: status.HTTP_409_CONFLICT,
    ProductInUse: status.HTTP_409_CONFLICT,
    NotificationError: status.HTTP_502_BAD_GATEWAY,
}


async def handle_domain_error(request: Request, exc: StockflowError) -> JSONResponse:
    """Translate a domain error into a response that names its kind."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StockflowError, handle_domain_error)


# Products


@router.get("/products", response_model=list[Product])
async def list_products(
    container: ServiceContainer = Depends(get_container),
) -> list[Product]:
    return await container.catalog.list_products()


@router.post(
    "/products",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    request: ProductCreate,
    container: ServiceContainer = Depends(get_container),
) -> Product:
    return await container.catalog.create_product(request)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    container: ServiceContainer = Depends(get_container),
) -> Product:
    return await container.catalog.get_product(product_id)


@router.put("/products/{product_id}", response_model=Product)
async def update_product(
    product_id: int,
    request: ProductUpdate,
    container: ServiceContainer = Depends(get_container),
) -> Product:
    return await container.catalog.update_product(product_id, request)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    container: ServiceContainer = Depends(get_container),
) -> None:
    await container.catalog.delete_product(product_id)


@router.post("/products/{product_id}/restock", response_model=StockLevelResponse)
async def restock_product(
    product_id: int,
    request: RestockRequest,
    container: ServiceContainer = Depends(get_container),
) -> StockLevelResponse:
    new_quantity = await container.catalog.restock(product_id, request.quantity)
    return StockLevelResponse(product_id=product_id, stock_quantity=new_quantity)


@router.get("/products/{product_id}/availability", response_model=StockValidation)
async def check_availability(
    product_id: int,
    quantity: int = Query(default=1, ge=1),
    x_session_id: str = Header(default="anonymous"),
    container: ServiceContainer = Depends(get_container),
) -> StockValidation:
    """
    Advisory stock check for UI feedback.

    The answer is not a hold; use ``POST /reservations`` for that.
    """
    reservations = container.reservations_for(x_session_id)
    return await reservations.validate(product_id, quantity)


# Reservations


@router.get("/reservations", response_model=list[Reservation])
async def list_reservations(
    reservations: ReservationManager = Depends(get_reservations),
) -> list[Reservation]:
    return await reservations.list_reservations()


@router.post(
    "/reservations",
    response_model=ReservationReceipt,
    status_code=status.HTTP_201_CREATED,
)
async def reserve_stock(
    request: ReserveRequest,
    reservations: ReservationManager = Depends(get_reservations),
) -> ReservationReceipt:
    return await reservations.reserve(request.product_id, request.quantity)


@router.delete("/reservations/{reservation_id}", response_model=ReleaseResponse)
async def release_reservation(
    reservation_id: str,
    reservations: ReservationManager = Depends(get_reservations),
) -> ReleaseResponse:
    released = await reservations.release(reservation_id)
    return ReleaseResponse(reservation_id=reservation_id, released=released)


# Orders


@router.get("/orders", response_model=list[Order])
async def list_orders(
    container: ServiceContainer = Depends(get_container),
) -> list[Order]:
    return await container.order_service.list_orders()


@router.post(
    "/orders",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
)
async def place_order(
    request: PlaceOrderRequest,
    x_session_id: str | None = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> Order:
    """
    Place an order.

    Items carrying a ``reservation_id`` from this session reuse the held
    stock instead of taking it again.
    """
    session_reservations = (
        container.registry.for_session(x_session_id) if x_session_id else None
    )
    return await container.order_service.place_order(
        request.items, session_reservations
    )


@router.get("/orders/status/{order_status}", response_model=list[Order])
async def get_orders_by_status(
    order_status: OrderStatus,
    container: ServiceContainer = Depends(get_container),
) -> list[Order]:
    return await container.order_service.get_orders_by_status(order_status)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: int,
    container: ServiceContainer = Depends(get_container),
) -> Order:
    return await container.order_service.get_order(order_id)


@router.put("/orders/{order_id}/cancel", response_model=Order)
async def cancel_order(
    order_id: int,
    container: ServiceContainer = Depends(get_container),
) -> Order:
    return await container.order_service.cancel_order(order_id)


@router.put("/orders/{order_id}/fulfill", response_model=Order)
async def fulfill_order(
    order_id: int,
    container: ServiceContainer = Depends(get_container),
) -> Order:
    return await container.order_service.fulfill_order(order_id)


@router.get("/admin/summary")
async def admin_summary(
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Stock on hand and order counts by status."""
    products = await container.catalog.list_products()
    orders = await container.order_service.list_orders()
    counts = {s.value: 0 for s in OrderStatus}
    for order in orders:
        counts[order.status.value] += 1

    return {
        "products": len(products),
        "units_in_stock": sum(p.stock_quantity for p in products),
        "stock_value": str(
            sum((p.price * p.stock_quantity for p in products), Decimal("0.00"))
        ),
        "orders": counts,
    }
