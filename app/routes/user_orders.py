from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlmodel import Session

from app.database import get_session
from app.exceptions import Forbidden
from app.schemas.orders_schemas import PlaceOrderRequest, serialize_order
from app.services.entitlement_store import (
    create_order,
    list_orders_for_user,
    require_order,
)
from app.services.receipt_service import render_receipt_pdf
from app.utils.token import Identity, get_current_identity

router = APIRouter()


def _visible_order(session: Session, order_id: str, identity: Identity):
    order = require_order(session, order_id)
    if order.user_id != identity.uid and not identity.is_admin:
        raise Forbidden("This order belongs to another user")
    return order


@router.post("", status_code=201)
def place_order(
    payload: PlaceOrderRequest,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    """Create a pending order. Payment is arranged with the shop out of band."""
    order = create_order(session, identity, payload.lines())
    return {
        "message": "Order placed. Send the order code to the shop to arrange payment.",
        "order": serialize_order(order),
    }


@router.get("/me")
def my_orders(
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return [serialize_order(o) for o in list_orders_for_user(session, identity.uid)]


@router.get("/{order_id}")
def order_detail(
    order_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    return serialize_order(_visible_order(session, order_id, identity))


@router.get("/{order_id}/receipt")
def order_receipt(
    order_id: str,
    session: Session = Depends(get_session),
    identity: Identity = Depends(get_current_identity),
):
    order = _visible_order(session, order_id, identity)
    return Response(
        content=render_receipt_pdf(order),
        media_type="application/pdf",
        headers={"Content-Disposition": f"inline; filename=receipt_{order.order_code}.pdf"},
    )
