from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.payments.chapa import ChapaGateway, chapa_gateway
from storefront.schemas.order_schemas import ErrorResponse, OrderCreate, OrderRead, PayOrderRequest
from storefront.services.order_service import create_order, get_order, mark_paid

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_payment_gateway() -> Optional[ChapaGateway]:
    if settings.payment_verification_enabled:
        return chapa_gateway
    return None


@router.post("/create", status_code=201, response_model=OrderRead, responses=ERROR_RESPONSES)
def create(
    payload: OrderCreate,
    session: Session = Depends(get_session),
):
    return create_order(session, payload)


@router.get("/{order_id}", response_model=OrderRead, responses=ERROR_RESPONSES)
def get_by_id(
    order_id: str,
    session: Session = Depends(get_session),
):
    return get_order(session, order_id)


@router.patch(
    "/{order_id}/pay",
    response_model=OrderRead,
    responses={**ERROR_RESPONSES, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def pay(
    order_id: str,
    payload: PayOrderRequest,
    session: Session = Depends(get_session),
    gateway: Optional[ChapaGateway] = Depends(get_payment_gateway),
):
    return mark_paid(session, order_id, payload.payment_method, gateway=gateway)
