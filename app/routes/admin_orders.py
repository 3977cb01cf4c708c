# -------- ADMIN ORDERS --------
from datetime import date, datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from app.database import get_session
from app.exceptions import InvalidRequest
from app.models.order import Order
from app.schemas.orders_schemas import (
    FulfillOrderRequest,
    OrderEventRead,
    OrderStatusUpdate,
    serialize_order,
)
from app.services.entitlement_store import require_order, update_order_status
from app.services.fulfillment import complete_order
from app.services.order_event_service import list_order_events
from app.services.r2_client import BlobStore, get_blob_store
from app.utils.pagination import paginate
from app.dependencies.admin import require_admin
from app.utils.token import Identity

router = APIRouter()


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    query = select(Order)

    if search:
        query = query.where(
            (Order.order_code.ilike(f"%{search}%")) |
            (Order.user_email.ilike(f"%{search}%")) |
            (Order.user_display_name.ilike(f"%{search}%"))
        )

    if status:
        query = query.where(Order.status == status)

    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        # end_date is inclusive of the whole day
        query = query.where(Order.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc()),
        page=page,
        limit=limit,
        serializer=serialize_order,
    )


@router.post("/fulfill")
def fulfill_order(
    payload: FulfillOrderRequest,
    session: Session = Depends(get_session),
    blob: BlobStore = Depends(get_blob_store),
    admin: Identity = Depends(require_admin),
):
    """Complete the order and create the buyer's file copies."""
    if not payload.order_id:
        raise InvalidRequest("Missing orderId.")

    order, materialized = complete_order(session, blob, payload.order_id, admin)

    return {
        "message": f"Successfully created {materialized} user files for order {order.id}.",
        "materialized": materialized,
        "order": serialize_order(order),
    }


@router.patch("/{order_id}/status")
def change_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    blob: BlobStore = Depends(get_blob_store),
    admin: Identity = Depends(require_admin),
):
    # completion always goes through fulfillment so files get copied
    if payload.status == "completed":
        order, materialized = complete_order(session, blob, order_id, admin)
        return {"order": serialize_order(order), "materialized": materialized}

    order, changed = update_order_status(session, order_id, payload.status, admin)
    return {"order": serialize_order(order), "changed": changed}


@router.get("/{order_id}/events", response_model=list[OrderEventRead])
def order_timeline(
    order_id: str,
    session: Session = Depends(get_session),
    _: Identity = Depends(require_admin),
):
    require_order(session, order_id)
    return list_order_events(session, order_id)
