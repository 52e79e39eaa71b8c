"""FastAPI REST API for the flower shop."""

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import __version__
from .config import Settings, cors_origins_from_env
from .errors import (
    DuplicateFlowerError,
    FlowerNotFoundError,
    FlowershopError,
    NoteNotFoundError,
    OrderNotFoundError,
    StorageError,
    UserExistsError,
    UserNotFoundError,
)
from .models import LineItem, NewOrder, OrderStatus
from .seed import seed_storage
from .storage import Storage, create_storage
from .utils import count_orders_by_status, filter_orders, group_orders_by_date, stock_summary

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class FlowerSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    flower: str
    amount: int
    date_time: datetime = Field(alias="dateTime")


class FlowerCreateRequest(BaseModel):
    """Request body for adding stock. Merges into an existing record of the same name."""

    flower: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


class FlowerUpdateRequest(BaseModel):
    flower: Optional[str] = Field(None, min_length=1)
    amount: Optional[int] = Field(None, ge=0)

    @field_validator("flower", "amount")
    @classmethod
    def check_not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class WriteoffSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    flower: str
    amount: int
    date_time: datetime = Field(alias="dateTime")


class WriteoffCreateRequest(BaseModel):
    flower: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


class NoteSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    content: str
    date_time: datetime = Field(alias="dateTime")


class NoteCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str


class NoteUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[str] = None

    @field_validator("title", "content")
    @classmethod
    def check_not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class OrderSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    from_: str = Field(alias="from")
    to: str
    address: str
    date_time: datetime = Field(alias="dateTime")
    notes: Optional[str] = None
    status: OrderStatus


class OrderItemSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    order_id: int = Field(alias="orderId")
    flower: str
    amount: int


class LineItemSchema(BaseModel):
    flower: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)


class OrderFieldsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    date_time: datetime = Field(..., alias="dateTime", description="Scheduled delivery time (ISO 8601)")
    notes: Optional[str] = None
    status: Optional[OrderStatus] = None


class OrderCreateRequest(BaseModel):
    order: OrderFieldsRequest
    items: list[LineItemSchema]


class OrderFieldsUpdateRequest(BaseModel):
    """Partial order fields. An explicit null is only meaningful for notes."""

    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[str] = Field(None, alias="from", min_length=1)
    to: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    date_time: Optional[datetime] = Field(None, alias="dateTime")
    notes: Optional[str] = None
    status: Optional[OrderStatus] = None

    @field_validator("from_", "to", "address", "date_time", "status")
    @classmethod
    def check_not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class OrderUpdateRequest(BaseModel):
    order: OrderFieldsUpdateRequest
    items: Optional[list[LineItemSchema]] = Field(
        None, description="Replaces all items when non-empty"
    )


class OrderStatusRequest(BaseModel):
    status: OrderStatus


class SuccessResponse(BaseModel):
    success: bool = True


class SummaryResponse(BaseModel):
    orders: dict[str, int]
    flower_count: int
    total_units: int
    out_of_stock: list[str]


# --- Storage ---


_storage: Storage | None = None


def get_storage() -> Storage:
    """Get the process-wide storage, creating it from the environment on first use."""
    global _storage
    if _storage is None:
        settings = Settings.from_env()
        storage = create_storage(settings)
        if settings.seed:
            seed_storage(storage)
        _storage = storage
    return _storage


def set_storage(storage: Storage | None) -> None:
    """Replace the process-wide storage (None resets to lazy creation)."""
    global _storage
    _storage = storage


# --- FastAPI App ---


app = FastAPI(
    title="flowershop API",
    description="REST API for flower shop stock, write-offs, orders and notes",
    version=__version__,
)

# CORS for the local web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(cors_origins_from_env()),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Exception Handlers ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    FlowerNotFoundError: 404,
    NoteNotFoundError: 404,
    OrderNotFoundError: 404,
    UserNotFoundError: 404,
    DuplicateFlowerError: 409,
    UserExistsError: 409,
    StorageError: 500,
}

INTERNAL_ERROR_DETAIL = "Internal server error"


@app.exception_handler(FlowershopError)
async def flowershop_error_handler(request: Request, exc: FlowershopError) -> JSONResponse:
    """Map FlowershopError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": INTERNAL_ERROR_DETAIL, "error_type": type(exc).__name__},
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report schema violations as 400 with one entry per offending field."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Request validation failed",
            "error_type": "ValidationError",
            "errors": errors,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": INTERNAL_ERROR_DETAIL, "error_type": "InternalError"},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    storage = get_storage()
    return {
        "status": "ok",
        "version": __version__,
        "storage": type(storage).__name__,
    }


@app.get("/api/summary", response_model=SummaryResponse)
def get_summary():
    """Order counts per status and warehouse totals for the home screen."""
    storage = get_storage()
    stock = stock_summary(storage.list_flowers())
    return SummaryResponse(
        orders=count_orders_by_status(storage.list_orders()),
        **stock,
    )


# --- Warehouse Endpoints ---


@app.get("/api/flowers", response_model=list[FlowerSchema])
def list_flowers():
    """List warehouse stock."""
    return [FlowerSchema.model_validate(f.to_dict()) for f in get_storage().list_flowers()]


@app.get("/api/flowers/{flower_id}", response_model=FlowerSchema)
def get_flower(flower_id: int):
    return FlowerSchema.model_validate(get_storage().get_flower(flower_id).to_dict())


@app.post("/api/flowers", response_model=FlowerSchema, status_code=201)
def add_flowers(request: FlowerCreateRequest):
    """Add flowers to stock, creating the record if the name is new."""
    stock = get_storage().add_flowers(request.flower, request.amount)
    return FlowerSchema.model_validate(stock.to_dict())


@app.put("/api/flowers/{flower_id}", response_model=FlowerSchema)
def update_flower(flower_id: int, request: FlowerUpdateRequest):
    """Overwrite the name and/or amount of a stock record."""
    update_data = request.model_dump(exclude_unset=True)
    stock = get_storage().update_flower(flower_id, **update_data)
    return FlowerSchema.model_validate(stock.to_dict())


# --- Write-off Endpoints ---


@app.get("/api/writeoffs", response_model=list[WriteoffSchema])
def list_writeoffs():
    return [WriteoffSchema.model_validate(w.to_dict()) for w in get_storage().list_writeoffs()]


@app.post("/api/writeoffs", response_model=WriteoffSchema, status_code=201)
def add_writeoff(request: WriteoffCreateRequest):
    """
    Record a write-off and deduct it from stock.

    Stock is floored at zero. A write-off for a flower with no stock record
    is still recorded.
    """
    writeoff = get_storage().add_writeoff(request.flower, request.amount)
    return WriteoffSchema.model_validate(writeoff.to_dict())


# --- Note Endpoints ---


@app.get("/api/notes", response_model=list[NoteSchema])
def list_notes():
    return [NoteSchema.model_validate(n.to_dict()) for n in get_storage().list_notes()]


@app.get("/api/notes/{note_id}", response_model=NoteSchema)
def get_note(note_id: int):
    return NoteSchema.model_validate(get_storage().get_note(note_id).to_dict())


@app.post("/api/notes", response_model=NoteSchema, status_code=201)
def add_note(request: NoteCreateRequest):
    note = get_storage().add_note(request.title, request.content)
    return NoteSchema.model_validate(note.to_dict())


@app.put("/api/notes/{note_id}", response_model=NoteSchema)
def update_note(note_id: int, request: NoteUpdateRequest):
    update_data = request.model_dump(exclude_unset=True)
    note = get_storage().update_note(note_id, **update_data)
    return NoteSchema.model_validate(note.to_dict())


@app.delete("/api/notes/{note_id}", response_model=SuccessResponse)
def delete_note(note_id: int):
    if not get_storage().delete_note(note_id):
        raise NoteNotFoundError(note_id)
    return SuccessResponse()


# --- Order Endpoints ---


@app.get("/api/orders", response_model=list[OrderSchema])
def list_orders(
    view: Optional[Literal["active", "delivery"]] = Query(
        None, description="active = New/Assembled, delivery = Sent/Finished"
    ),
    status: Optional[OrderStatus] = Query(None),
):
    """List orders, latest scheduled first."""
    orders = filter_orders(get_storage().list_orders(), view=view, status=status)
    return [OrderSchema.model_validate(o.to_dict()) for o in orders]


@app.get("/api/orders/grouped", response_model=dict[str, list[OrderSchema]])
def list_orders_grouped(
    view: Optional[Literal["active", "delivery"]] = Query(None),
):
    """Orders grouped by scheduled day (YYYY-MM-DD), earliest day first."""
    orders = filter_orders(get_storage().list_orders(), view=view)
    return {
        day: [OrderSchema.model_validate(o.to_dict()) for o in day_orders]
        for day, day_orders in group_orders_by_date(orders).items()
    }


@app.get("/api/orders/{order_id}", response_model=OrderSchema)
def get_order(order_id: int):
    return OrderSchema.model_validate(get_storage().get_order(order_id).to_dict())


@app.get("/api/orders/{order_id}/items", response_model=list[OrderItemSchema])
def list_order_items(order_id: int):
    return [OrderItemSchema.model_validate(i.to_dict()) for i in get_storage().list_order_items(order_id)]


@app.post("/api/orders", response_model=OrderSchema, status_code=201)
def create_order(request: OrderCreateRequest):
    """Create an order with its items. Each item is deducted from stock."""
    fields = request.order
    order = get_storage().create_order(
        NewOrder(
            from_=fields.from_,
            to=fields.to,
            address=fields.address,
            date_time=fields.date_time,
            notes=fields.notes,
            status=fields.status,
        ),
        [LineItem(flower=i.flower, amount=i.amount) for i in request.items],
    )
    return OrderSchema.model_validate(order.to_dict())


@app.put("/api/orders/{order_id}/status", response_model=OrderSchema)
def update_order_status(order_id: int, request: OrderStatusRequest):
    """Set the order status. Any status is accepted from any other."""
    order = get_storage().update_order_status(order_id, request.status)
    return OrderSchema.model_validate(order.to_dict())


@app.put("/api/orders/{order_id}", response_model=OrderSchema)
def update_order(order_id: int, request: OrderUpdateRequest):
    """
    Edit order fields and optionally replace its items.

    Fields missing from the body are left unchanged. A non-empty items list
    replaces all existing items and re-balances stock.
    """
    changes = request.order.model_dump(exclude_unset=True)
    items = None
    if request.items:
        items = [LineItem(flower=i.flower, amount=i.amount) for i in request.items]
    order = get_storage().update_order(order_id, changes, items)
    return OrderSchema.model_validate(order.to_dict())


@app.delete("/api/orders/{order_id}", response_model=SuccessResponse)
def delete_order(order_id: int):
    """Mark an order as Deleted. The order stays retrievable."""
    get_storage().delete_order(order_id)
    return SuccessResponse()
