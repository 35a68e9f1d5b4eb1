from pydantic import BaseModel
from typing import Optional


class BookAppointmentRequest(BaseModel):
    doc_id: Optional[str] = None
    slot_date: Optional[str] = None
    slot_time: Optional[str] = None


class AppointmentAction(BaseModel):
    appointment_id: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    order_id: Optional[str] = None


class DoctorAction(BaseModel):
    doc_id: Optional[str] = None
