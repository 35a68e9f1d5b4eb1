from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError
from typing import Optional
import logging

from auth.auth_handler import get_current_admin, hash_password
from appointment.routes import cancel_and_release, load_appointment
from models.appointment import Appointment
from models.doctor import Doctor
from models.user import User
from schemas.appointment import AppointmentAction, DoctorAction
from utils.cloudinary_utils import upload_image
from utils.errors import ConflictError, ValidationError
from utils.validators import check_email, check_password, parse_address, parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")

LATEST_APPOINTMENTS = 5


@router.post("/add-doctor")
async def add_doctor(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    speciality: Optional[str] = Form(None),
    degree: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    fees: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_admin: str = Depends(get_current_admin),
):
    # fees may legitimately be 0
    if fees is None or not all([name, email, password, speciality, degree, experience, about, address]):
        raise ValidationError("Missing Details")
    check_email(email)
    check_password(password)
    if image is None or not image.filename:
        raise ValidationError("Image file is required")
    doctor_address = parse_address(address)

    if await Doctor.find_one(Doctor.email == email):
        raise ConflictError("Doctor already exists")

    image_url = await run_in_threadpool(upload_image, image)
    doctor = Doctor(
        name=name,
        email=email,
        password=await run_in_threadpool(hash_password, password),
        image=image_url,
        speciality=speciality,
        degree=degree,
        experience=experience,
        about=about,
        fees=fees,
        address=doctor_address,
    )
    try:
        await doctor.insert()
    except DuplicateKeyError:
        raise ConflictError("Doctor already exists")

    logger.info(f"Doctor {doctor.id} added")
    return {"success": True, "message": "Doctor Added", "doctor_id": str(doctor.id)}


@router.get("/all-doctors")
async def all_doctors(current_admin: str = Depends(get_current_admin)):
    doctors = await Doctor.find_all().to_list()
    return {"success": True, "doctors": [doctor.public_data() for doctor in doctors]}


@router.post("/change-availability")
async def change_availability(
    request: DoctorAction,
    current_admin: str = Depends(get_current_admin),
):
    available = await Doctor.toggle_availability(parse_object_id(request.doc_id, "doctor"))
    return {"success": True, "message": "Availability Changed", "available": available}


@router.get("/appointments")
async def appointments_admin(current_admin: str = Depends(get_current_admin)):
    appointments = await Appointment.find_all().to_list()
    return {"success": True, "appointments": appointments}


@router.post("/cancel-appointment")
async def appointment_cancel(
    request: AppointmentAction,
    current_admin: str = Depends(get_current_admin),
):
    appointment = await load_appointment(request.appointment_id)
    await cancel_and_release(appointment)
    return {"success": True, "message": "Appointment cancelled successfully"}


@router.get("/dashboard")
async def admin_dashboard(current_admin: str = Depends(get_current_admin)):
    latest = (
        await Appointment.find_all()
        .sort("-_id")  # ObjectIds grow with insertion order
        .limit(LATEST_APPOINTMENTS)
        .to_list()
    )
    dash_data = {
        "doctors": await Doctor.find_all().count(),
        "appointments": await Appointment.find_all().count(),
        "patients": await User.find_all().count(),
        "latest_appointments": latest,
    }
    return {"success": True, "dash_data": dash_data}
