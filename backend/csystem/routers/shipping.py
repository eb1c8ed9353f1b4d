# csystem/routers/shipping.py

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from csystem import auth, models, schemas
from csystem.db import get_db
from csystem.enums import OrderStatus, Role
from csystem.exceptions import AuthorizationError, OrderNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/shipping",
    tags=["Shipping"]
)

ALL_SUPPLIERS = "*"


def effective_supplier_id(person: models.Person) -> Optional[str]:
    """Supplier whose orders ``person`` works on; ALL_SUPPLIERS for admins."""
    if person.role == Role.SUPER_ADMIN.value:
        return ALL_SUPPLIERS
    if person.role == Role.SUPPLIER.value:
        return person.id
    if person.role == Role.MANPOWER.value and person.manpower_data is not None:
        return person.manpower_data.supplier_id
    return None


def _get_order(db: Session, order_id: str, person: models.Person) -> models.Order:
    order = db.query(models.Order).filter(models.Order.id == order_id).first()
    if not order:
        raise OrderNotFoundError(order_id)
    supplier_id = effective_supplier_id(person)
    if supplier_id != ALL_SUPPLIERS and order.supplier_id != supplier_id:
        raise AuthorizationError("This order belongs to another supplier")
    return order


# --- Orders of the effective supplier ---
@router.get("", response_model=List[schemas.OrderOut])
def list_orders(
    status: Optional[str] = Query(None),
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0)
):
    supplier_id = effective_supplier_id(current_user)
    if supplier_id is None:
        return []
    query = db.query(models.Order)
    if supplier_id != ALL_SUPPLIERS:
        query = query.filter(models.Order.supplier_id == supplier_id)
    if status:
        query = query.filter(models.Order.status == status.upper())
    return query.order_by(models.Order.created_at.desc()).offset(offset).limit(limit).all()


# --- Courier info of one order ---
@router.get("/{order_id}", response_model=Optional[schemas.CourierInfoOut])
def get_courier_info(
    order_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    return _get_order(db, order_id, current_user).courier_info


# --- Upsert courier info, mark order shipped ---
@router.post("/{order_id}", response_model=schemas.CourierInfoOut)
def upsert_courier_info(
    order_id: str,
    payload: schemas.CourierInfoIn,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    order = _get_order(db, order_id, current_user)
    now = datetime.now(timezone.utc)

    courier = order.courier_info
    if courier is None:
        courier = models.CourierInfo(order_id=order.id)
        db.add(courier)
    courier.courier_name = payload.courier_name
    courier.awb_number = payload.awb_number
    courier.tracking_url = payload.tracking_url
    courier.shipping_cost = payload.shipping_cost
    courier.estimated_delivery = payload.estimated_delivery
    courier.shipped_at = now

    order.status = OrderStatus.SHIPPED.value
    db.add(models.OrderTracking(
        order_id=order.id,
        status=OrderStatus.SHIPPED.value,
        description=f"Shipping info updated: {payload.courier_name} - AWB: {payload.awb_number}",
        updated_by=current_user.id,
        created_at=now
    ))

    db.commit()
    db.refresh(courier)
    logger.info(f"Order {order.order_no} shipped via {payload.courier_name} ({payload.awb_number})")
    return courier


# --- Tracking trail ---
@router.get("/{order_id}/tracking", response_model=List[schemas.OrderTrackingOut])
def get_tracking(
    order_id: str,
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    order = _get_order(db, order_id, current_user)
    return db.query(models.OrderTracking).filter(
        models.OrderTracking.order_id == order.id
    ).order_by(models.OrderTracking.created_at).all()
