from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Sequence

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from returns.result import Success

from lesson_booking.core.domain.model.anomaly import LedgerAnomaly
from lesson_booking.core.domain.model.errors import (
    BookingError,
    InsufficientCapacity,
    NotFoundError,
    PersistenceFailed,
    StoreUnavailable,
    ValidationFailed,
)
from lesson_booking.core.domain.model.lesson import Lesson
from lesson_booking.core.domain.model.order import Order
from lesson_booking.core.ports.inbound.catalog import (
    CatalogUseCase,
    SearchLessonsQuery,
    UpdateLessonCommand,
)
from lesson_booking.core.ports.inbound.list_orders import ListOrdersUseCase
from lesson_booking.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)
from lesson_booking.core.ports.outbound.anomalies import AnomalyRecorder

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrderLineIn(_CamelModel):
    lesson_id: str = Field(alias="lessonId", min_length=1, examples=["lesson-01"])
    qty: int = Field(strict=True, gt=0, examples=[1])


class PlaceOrderRequest(_CamelModel):
    name: str = Field(min_length=1, examples=["Ada Lovelace"])
    phone: str = Field(min_length=1, examples=["07700900123"])
    line_items: list[OrderLineIn] = Field(alias="lineItems", min_length=1)
    total: Decimal | None = Field(default=None, ge=0, examples=["100.00"])


class UpdateLessonRequest(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    subject: str | None = None
    location: str | None = None
    price: Decimal | None = None
    spaces_available: int | None = Field(default=None, alias="spacesAvailable")
    icon: str | None = None
    description: str | None = None


class LessonOut(_CamelModel):
    id: str
    subject: str
    location: str
    price: str
    spaces_available: int = Field(alias="spacesAvailable")
    icon: str
    description: str


class OrderLineOut(_CamelModel):
    lesson_id: str = Field(alias="lessonId")
    qty: int
    unit_price: str = Field(alias="unitPrice")
    subtotal: str


class OrderOut(_CamelModel):
    id: str
    name: str
    phone: str
    line_items: list[OrderLineOut] = Field(alias="lineItems")
    total: str
    currency: str
    created_at: datetime = Field(alias="createdAt")


class PlaceOrderResponse(BaseModel):
    message: str
    order: OrderOut


class UpdateLessonResponse(BaseModel):
    message: str
    lesson: LessonOut


class AnomalyOut(_CamelModel):
    order_id: str = Field(alias="orderId")
    lesson_id: str = Field(alias="lessonId")
    qty: int
    reason: str
    recorded_at: datetime = Field(alias="recordedAt")


class ErrorResponse(_CamelModel):
    type: str
    message: str
    lesson_id: str | None = Field(default=None, alias="lessonId")
    details: list[dict[str, Any]] | None = None


# ---- Mapping helpers -------------------------------------------------------


def _lesson_out(lesson: Lesson) -> LessonOut:
    return LessonOut(
        id=lesson.lesson_id.value,
        subject=lesson.subject,
        location=lesson.location,
        price=str(lesson.price.amount),
        spaces_available=lesson.spaces_available,
        icon=lesson.icon,
        description=lesson.description,
    )


def _order_out(order: Order) -> OrderOut:
    total = order.total()
    return OrderOut(
        id=str(order.order_id.value),
        name=order.customer_name,
        phone=order.customer_phone,
        line_items=[
            OrderLineOut(
                lesson_id=it.lesson_id.value,
                qty=it.quantity,
                unit_price=str(it.unit_price.amount),
                subtotal=str(it.subtotal().amount),
            )
            for it in order.items
        ],
        total=str(total.amount),
        currency=total.currency,
        created_at=order.created_at,
    )


def _anomaly_out(anomaly: LedgerAnomaly) -> AnomalyOut:
    return AnomalyOut(
        order_id=str(anomaly.order_id.value),
        lesson_id=anomaly.lesson_id.value,
        qty=anomaly.quantity,
        reason=anomaly.reason,
        recorded_at=anomaly.recorded_at,
    )


def _to_command(req: PlaceOrderRequest) -> PlaceOrderCommand:
    return PlaceOrderCommand(
        customer_name=req.name,
        customer_phone=req.phone,
        lines=tuple(
            PlaceOrderLine(lesson_id=ln.lesson_id, quantity=ln.qty)
            for ln in req.line_items
        ),
        declared_total=req.total,
    )


def _map_error_to_http(err: BookingError) -> tuple[int, ErrorResponse]:
    if isinstance(err, ValidationFailed):
        return 400, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, NotFoundError):
        return 404, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, InsufficientCapacity):
        return 409, ErrorResponse(
            type=type(err).__name__, message=str(err), lesson_id=err.lesson_id
        )

    if isinstance(err, StoreUnavailable):
        return 503, ErrorResponse(type=type(err).__name__, message=str(err))

    if isinstance(err, PersistenceFailed):
        return 500, ErrorResponse(type=type(err).__name__, message=str(err))

    return 500, ErrorResponse(type=type(err).__name__, message=str(err))


def _error_response(err: BookingError) -> JSONResponse:
    status, body = _map_error_to_http(err)
    return JSONResponse(
        status_code=status, content=body.model_dump(by_alias=True, exclude_none=True)
    )


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ---- App factory -----------------------------------------------------------


def create_app(
    place_order_uc: PlaceOrderUseCase,
    catalog_uc: CatalogUseCase,
    list_orders_uc: ListOrdersUseCase,
    anomalies: AnomalyRecorder,
    *,
    title: str = "lesson_booking",
    version: str = "0.1.0",
    cors_origins: Sequence[str] = ("*",),
    images_dir: str | None = "images",
    on_shutdown: Callable[[], None] | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if on_shutdown is not None:
            on_shutdown()

    app = FastAPI(title=title, version=version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=list(cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        logger.info(
            f"[Request] {request.method} {request.url.path} - "
            f"{datetime.now(timezone.utc).isoformat()}"
        )
        return await call_next(request)

    if images_dir and Path(images_dir).is_dir():
        app.mount("/images", StaticFiles(directory=images_dir), name="images")

    # --- exception handlers --------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="ValidationFailed",
            message="invalid request",
            details=jsonable_encoder(exc.errors()),
        )
        # malformed or missing fields are a client error
        return JSONResponse(
            status_code=400, content=body.model_dump(by_alias=True, exclude_none=True)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(
            f"unhandled error on {request.method} {request.url.path}"
        )
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(
            status_code=500, content=body.model_dump(by_alias=True, exclude_none=True)
        )

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/lessons", response_model=list[LessonOut], responses=_ERROR_RESPONSES)
    def list_lessons() -> Any:
        result = catalog_uc.list_lessons()
        if isinstance(result, Success):
            return [_lesson_out(ls) for ls in result.unwrap()]
        return _error_response(result.failure())

    @app.get("/search", response_model=list[LessonOut], responses=_ERROR_RESPONSES)
    def search_lessons(q: str | None = Query(None)) -> Any:
        result = catalog_uc.search_lessons(SearchLessonsQuery(term=q))
        if isinstance(result, Success):
            return [_lesson_out(ls) for ls in result.unwrap()]
        return _error_response(result.failure())

    @app.put(
        "/lessons/{lesson_id}",
        response_model=UpdateLessonResponse,
        responses=_ERROR_RESPONSES,
    )
    def update_lesson(lesson_id: str, req: UpdateLessonRequest) -> Any:
        result = catalog_uc.update_lesson(
            UpdateLessonCommand(
                lesson_id=lesson_id,
                subject=req.subject,
                location=req.location,
                price=req.price,
                spaces_available=req.spaces_available,
                icon=req.icon,
                description=req.description,
            )
        )
        if isinstance(result, Success):
            return UpdateLessonResponse(
                message="Lesson updated", lesson=_lesson_out(result.unwrap())
            )
        return _error_response(result.failure())

    @app.post(
        "/orders",
        response_model=PlaceOrderResponse,
        status_code=201,
        responses=_ERROR_RESPONSES,
    )
    def place_order(req: PlaceOrderRequest) -> Any:
        result = place_order_uc.place_order(_to_command(req))
        if isinstance(result, Success):
            return PlaceOrderResponse(
                message="Order placed", order=_order_out(result.unwrap())
            )
        return _error_response(result.failure())

    @app.get("/orders", response_model=list[OrderOut], responses=_ERROR_RESPONSES)
    def list_orders() -> Any:
        result = list_orders_uc.list_orders()
        if isinstance(result, Success):
            return [_order_out(o) for o in result.unwrap()]
        return _error_response(result.failure())

    @app.get(
        "/ledger/anomalies", response_model=list[AnomalyOut], responses=_ERROR_RESPONSES
    )
    def list_anomalies() -> Any:
        result = anomalies.list_all()
        if isinstance(result, Success):
            return [_anomaly_out(a) for a in result.unwrap()]
        return _error_response(result.failure())

    return app
