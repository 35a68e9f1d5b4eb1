from beanie import Document
from pydantic import Field
from typing import Any, Dict
from datetime import datetime


class Appointment(Document):
    user_id: str
    doc_id: str
    slot_date: str
    slot_time: str
    # Snapshots taken at booking time; never rewritten afterwards
    user_data: Dict[str, Any]
    doc_data: Dict[str, Any]
    amount: float
    date: datetime = Field(default_factory=datetime.utcnow)
    cancelled: bool = False
    payment: bool = False
    is_completed: bool = False

    class Settings:
        name = "appointments"  # MongoDB collection name

    async def cancel(self) -> bool:
        """Flag the appointment as cancelled.

        Returns True only for the call that performed the transition.
        """
        result = await self.get_motor_collection().update_one(
            {"_id": self.id, "cancelled": False},
            {"$set": {"cancelled": True}},
        )
        self.cancelled = True
        return result.modified_count == 1

    async def mark_paid(self):
        await self.set({Appointment.payment: True})
