from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
import logging

from auth.auth_handler import get_current_user
from appointment.routes import load_appointment
from config import settings
from models.appointment import Appointment
from payment import gateway
from schemas.appointment import AppointmentAction, VerifyPaymentRequest
from utils.errors import CancelledError, NotFoundError, ValidationError
from utils.validators import parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user")


@router.post("/payment")
async def create_payment(
    request: AppointmentAction,
    current_user: str = Depends(get_current_user),
):
    appointment = await Appointment.get(parse_object_id(request.appointment_id, "appointment"))
    if appointment is None:
        raise NotFoundError("Appointment Cancelled or does not exist")
    if appointment.cancelled:
        raise CancelledError("Appointment Cancelled or does not exist")

    order = await run_in_threadpool(
        gateway.create_order, appointment.amount, settings.currency, str(appointment.id)
    )
    return {"success": True, "order": order}


@router.post("/verify-payment")
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: str = Depends(get_current_user),
):
    if not request.order_id:
        raise ValidationError("Missing order id")

    order_info = await run_in_threadpool(gateway.fetch_order, request.order_id)
    if order_info["status"] != "paid":
        logger.warning(f"Order {request.order_id} not paid: {order_info['status']}")
        return {"success": False, "message": "Payment Failed"}

    try:
        appointment = await load_appointment(order_info["receipt"])
    except ValidationError:
        raise NotFoundError("Appointment not found")
    # Replays simply rewrite the same flag
    await appointment.mark_paid()

    logger.info(f"Appointment {appointment.id} paid via order {request.order_id}")
    return {"success": True, "message": "Payment Successful"}
