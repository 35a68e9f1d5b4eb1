from fastapi import APIRouter, Depends
import logging

from auth.auth_handler import get_current_user
from models.appointment import Appointment
from models.doctor import Doctor, check_slot_key
from schemas.appointment import AppointmentAction, BookAppointmentRequest
from user.routes import load_user
from utils.errors import AuthError, NotFoundError, UnavailableError, ValidationError
from utils.validators import parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user")


async def load_appointment(appointment_id: str) -> Appointment:
    appointment = await Appointment.get(parse_object_id(appointment_id, "appointment"))
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment


async def cancel_and_release(appointment: Appointment):
    """Cancel ``appointment`` and hand its slot back to the doctor.

    The slot is released only by the call that flipped ``cancelled``, so a
    repeated cancel cannot free a slot that was booked again meanwhile.
    """
    if await appointment.cancel():
        await Doctor.release_slot(
            parse_object_id(appointment.doc_id, "doctor"),
            appointment.slot_date,
            appointment.slot_time,
        )
        logger.info(f"Appointment {appointment.id} cancelled")


@router.post("/book-appointment")
async def book_appointment(
    request: BookAppointmentRequest,
    current_user: str = Depends(get_current_user),
):
    if not request.doc_id or not request.slot_date or not request.slot_time:
        raise ValidationError("Missing required appointment details")
    if not current_user:
        raise AuthError("User not authenticated")
    check_slot_key(request.slot_date)

    doctor = await Doctor.get(parse_object_id(request.doc_id, "doctor"))
    if doctor is None:
        raise NotFoundError("Doctor not found")
    if not doctor.available:
        raise UnavailableError("Doctor not available")
    user = await load_user(current_user)

    await Doctor.reserve_slot(doctor.id, request.slot_date, request.slot_time)

    appointment = Appointment(
        user_id=str(user.id),
        doc_id=str(doctor.id),
        slot_date=request.slot_date,
        slot_time=request.slot_time,
        user_data=user.public_data(),
        doc_data=doctor.snapshot(),
        amount=doctor.fees,
    )
    try:
        await appointment.insert()
    except Exception:
        # Give the slot back so the ledger never shows a booking without an appointment
        logger.error(f"Appointment insert failed, releasing {request.slot_date} {request.slot_time}")
        await Doctor.release_slot(doctor.id, request.slot_date, request.slot_time)
        raise

    logger.info(f"Appointment {appointment.id} booked by user {current_user}")
    return {
        "success": True,
        "message": "Appointment booked successfully",
        "appointment_id": str(appointment.id),
    }


@router.get("/appointments")
async def list_appointments(current_user: str = Depends(get_current_user)):
    appointments = await Appointment.find(Appointment.user_id == current_user).to_list()
    return {"success": True, "appointments": appointments}


@router.post("/cancel-appointment")
async def cancel_appointment(
    request: AppointmentAction,
    current_user: str = Depends(get_current_user),
):
    appointment = await load_appointment(request.appointment_id)
    if appointment.user_id != current_user:
        raise AuthError("Unauthorized action")

    await cancel_and_release(appointment)
    return {"success": True, "message": "Appointment cancelled successfully"}
