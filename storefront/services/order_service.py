# storefront/services/order_service.py
import logging
from typing import Optional

from sqlalchemy import false, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.exceptions import (
    AlreadyPaid,
    NotFound,
    PersistenceError,
    ValidationError,
)
from storefront.models.order import Order, utcnow
from storefront.payments.chapa import ChapaGateway
from storefront.pricing import calculate_totals, find_mismatches
from storefront.schemas.order_schemas import OrderCreate

logger = logging.getLogger(__name__)


def create_order(session: Session, payload: OrderCreate) -> Order:
    """
    Persist a new, unpaid order.

    Totals are recomputed from the cart snapshot; a payload whose totals
    disagree with ours is rejected and the stored figures are always ours.
    """
    totals = calculate_totals(payload.cart_items, payload.shipping_option.value)

    claimed = payload.model_dump(
        by_alias=True,
        include={"subtotal", "discount", "tax", "shipping_cost", "total"},
    )
    mismatches = find_mismatches(claimed, totals)
    if mismatches:
        logger.warning(f"Order totals rejected for {payload.email}: {mismatches}")
        raise ValidationError(
            "Order totals do not match the cart: " + ", ".join(mismatches)
        )

    order = Order(
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        address=payload.address,
        city=payload.city,
        postal_code=payload.postal_code,
        payment_method=payload.payment_method,
        shipping_option=payload.shipping_option.value,
        cart_items=[item.model_dump() for item in payload.cart_items],
        subtotal=float(totals.subtotal),
        discount=float(totals.discount),
        tax=float(totals.tax),
        shipping_cost=float(totals.shipping_cost),
        total=float(totals.total),
    )

    try:
        session.add(order)
        session.commit()
        session.refresh(order)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Order creation error")
        raise PersistenceError("Failed to create order")

    logger.info(f"Order {order.id} created, total {order.total}")
    return order


def get_order(session: Session, order_id: str) -> Order:
    try:
        order = session.get(Order, order_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to load order {order_id}")
        raise PersistenceError("Failed to get order")

    if not order:
        raise NotFound()
    return order


def mark_paid(
    session: Session,
    order_id: str,
    payment_method: str,
    gateway: Optional[ChapaGateway] = None,
) -> Order:
    """
    Record a successful payment.

    An order is paid at most once. With a gateway the payment is confirmed
    with the provider before the order changes.
    """
    try:
        order = session.get(Order, order_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to load order {order_id}")
        raise PersistenceError("Payment update failed")

    if not order:
        raise NotFound()

    if order.is_paid:
        logger.warning(f"Order {order.id} already paid at {order.paid_at}")
        raise AlreadyPaid()

    if gateway is not None:
        gateway.confirm_payment(order.id, order.total)
    else:
        logger.warning(f"Order {order.id} marked paid without provider verification")

    # only the first writer flips is_paid; a concurrent payer updates no row
    table = Order.__table__
    statement = (
        update(table)
        .where(table.c.id == order.id, table.c.is_paid == false())
        .values(payment_method=payment_method, is_paid=True, paid_at=utcnow())
    )

    try:
        result = session.connection().execute(statement)
        updated = result.rowcount == 1
        if updated:
            session.commit()
        else:
            session.rollback()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Payment update failed for order {order_id}")
        raise PersistenceError("Payment update failed")

    if not updated:
        logger.warning(f"Order {order.id} was paid by a concurrent request")
        raise AlreadyPaid()

    try:
        session.refresh(order)
    except SQLAlchemyError:
        logger.exception(f"Failed to reload order {order_id}")
        raise PersistenceError("Payment update failed")

    logger.info(f"Order {order.id} paid via {payment_method}")
    return order
