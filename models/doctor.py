from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field
from typing import Any, Dict, List
from datetime import datetime
import logging

from utils.errors import NotFoundError, SlotTakenError, UnavailableError, ValidationError

logger = logging.getLogger(__name__)


def check_slot_key(slot_date: str):
    # Date keys become part of a dotted update path.
    if not slot_date or "." in slot_date or slot_date.startswith("$"):
        raise ValidationError("Invalid slot date")


class Doctor(Document):
    name: str
    email: Indexed(str, unique=True)
    password: str
    image: str
    speciality: str
    degree: str
    experience: str
    about: str
    available: bool = True
    fees: float
    address: Dict[str, Any]
    date: datetime = Field(default_factory=datetime.utcnow)
    # date key -> booked time keys, e.g. {"2024-01-10": ["10:00", "11:00"]}
    slots_booked: Dict[str, List[str]] = Field(default_factory=dict)

    class Settings:
        name = "doctors"

    def public_data(self, exclude=()) -> Dict[str, Any]:
        return self.model_dump(
            mode="json", by_alias=True, exclude={"password", "revision_id", *exclude}
        )

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the doctor embedded into an appointment at booking time."""
        return self.public_data(exclude={"slots_booked"})

    @classmethod
    async def reserve_slot(cls, doctor_id: PydanticObjectId, slot_date: str, slot_time: str):
        """Append ``slot_time`` to the ledger for ``slot_date``.

        The availability check, the exclusivity check and the append happen in
        one conditional update, so two concurrent reservations of the same
        slot cannot both succeed. When nothing matched, the doctor is read
        back only to tell the caller why.
        """
        check_slot_key(slot_date)
        key = f"slots_booked.{slot_date}"
        result = await cls.get_motor_collection().update_one(
            {"_id": doctor_id, "available": True, key: {"$ne": slot_time}},
            {"$push": {key: slot_time}},
        )
        if result.matched_count:
            logger.info(f"Reserved {slot_date} {slot_time} for doctor {doctor_id}")
            return

        doctor = await cls.get(doctor_id)
        if doctor is None:
            raise NotFoundError("Doctor not found")
        if not doctor.available:
            raise UnavailableError("Doctor not available")
        raise SlotTakenError("Slot not available")

    @classmethod
    async def release_slot(cls, doctor_id: PydanticObjectId, slot_date: str, slot_time: str):
        """Remove ``slot_time`` from the ledger. Releasing a free slot is a no-op."""
        check_slot_key(slot_date)
        key = f"slots_booked.{slot_date}"
        collection = cls.get_motor_collection()
        result = await collection.update_one(
            {"_id": doctor_id, key: slot_time},
            {"$pull": {key: slot_time}},
        )
        # Drop the date entry once its last slot is gone.
        await collection.update_one(
            {"_id": doctor_id, key: {"$size": 0}},
            {"$unset": {key: ""}},
        )
        if result.modified_count:
            logger.info(f"Released {slot_date} {slot_time} for doctor {doctor_id}")

    @classmethod
    async def toggle_availability(cls, doctor_id: PydanticObjectId) -> bool:
        """Flip ``available`` and return the new value.

        The write only lands if the flag still holds the value that was read,
        so concurrent toggles each flip it once instead of undoing each other.
        """
        collection = cls.get_motor_collection()
        while True:
            doctor = await cls.get(doctor_id)
            if doctor is None:
                raise NotFoundError("Doctor not found")
            result = await collection.update_one(
                {"_id": doctor_id, "available": doctor.available},
                {"$set": {"available": not doctor.available}},
            )
            if result.modified_count:
                logger.info(f"Doctor {doctor_id} available={not doctor.available}")
                return not doctor.available
