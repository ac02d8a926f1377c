"""
streamcart_orders.api.routers.orders

Order endpoints for authenticated callers.

Responsibilities:
- Create an order owned by the caller (owner never taken from the body).
- Fetch one order (owner-only) and list the caller's orders.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from starlette.status import HTTP_201_CREATED

from streamcart_orders.api.deps import order_workflow
from streamcart_orders.auth.deps import current_identity, require_authenticated
from streamcart_orders.auth.models import Identity
from streamcart_orders.db.models import Order, OrderStatus
from streamcart_orders.services.order_workflow import MAX_QUANTITY, OrderLine, OrderWorkflow

# Anonymous callers are rejected before the request body is validated.
router = APIRouter(
    prefix="/orders", tags=["orders"], dependencies=[Depends(require_authenticated)]
)


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItemRequest(_ApiModel):
    product_id: str = Field(min_length=1, max_length=64)
    product_name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1, le=MAX_QUANTITY)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    @field_validator("product_id", "product_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CreateOrderRequest(_ApiModel):
    items: list[OrderItemRequest] = Field(min_length=1)


class OrderItemResponse(_ApiModel):
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


class OrderResponse(_ApiModel):
    order_id: str
    username: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    items: list[OrderItemResponse]

    @classmethod
    def from_order(cls, order: Order) -> OrderResponse:
        return cls(
            order_id=order.id,
            username=order.owner,
            total_amount=order.total_amount,
            status=order.status,
            created_at=order.created_at,
            items=[
                OrderItemResponse(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in order.items
            ],
        )


@router.post("", response_model=OrderResponse, status_code=HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    identity: Identity = Depends(current_identity),
    workflow: OrderWorkflow = Depends(order_workflow),
) -> OrderResponse:
    lines = [
        OrderLine(
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            price=item.price,
        )
        for item in body.items
    ]
    order = await workflow.create_order(identity, lines)
    return OrderResponse.from_order(order)


# Declared before /{order_id} so "mine" is not captured as an id.
@router.get("/mine", response_model=list[OrderResponse])
async def list_my_orders(
    identity: Identity = Depends(current_identity),
    workflow: OrderWorkflow = Depends(order_workflow),
) -> list[OrderResponse]:
    return [OrderResponse.from_order(o) for o in await workflow.list_orders(identity)]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
    workflow: OrderWorkflow = Depends(order_workflow),
) -> OrderResponse:
    return OrderResponse.from_order(await workflow.get_order(identity, order_id))
