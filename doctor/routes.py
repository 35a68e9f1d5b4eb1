from fastapi import APIRouter

from models.doctor import Doctor

router = APIRouter(prefix="/doctor")


@router.get("/list")
async def doctor_list():
    doctors = await Doctor.find_all().to_list()
    return {
        "success": True,
        "doctors": [doctor.public_data(exclude={"email"}) for doctor in doctors],
    }
