from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from models.user import User
from auth.auth_handler import get_current_user
from utils.cloudinary_utils import upload_image
from utils.errors import ClinicError, NotFoundError, ValidationError
from utils.validators import parse_address, parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user")


async def load_user(user_id: str) -> User:
    user = await User.get(parse_object_id(user_id, "user"))
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/get-profile")
async def get_profile(current_user: str = Depends(get_current_user)):
    user = await load_user(current_user)
    return {"success": True, "user_data": user.public_data()}


@router.post("/update-profile")
async def update_profile(
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: str = Depends(get_current_user),
):
    if not name:
        raise ValidationError("Name is required")

    update_data = {
        "name": name,
        "phone": phone or "",
        "dob": dob or "",
        "gender": gender or "",
    }
    if address:
        update_data["address"] = parse_address(address)

    try:
        user = await load_user(current_user)
        # Upload before writing so the profile and avatar land in one update
        if image is not None and image.filename:
            update_data["image"] = await run_in_threadpool(upload_image, image)
        await user.set(update_data)
    except ClinicError as e:
        logger.warning(f"Profile update failed for {current_user}: {e.message}")
        return JSONResponse(status_code=500, content={"success": False, "message": e.message})
    except Exception as e:
        logger.exception(f"Profile update error for {current_user}")
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})

    logger.info(f"Profile updated for user {current_user}")
    return {"success": True, "message": "Profile Updated", "user_data": user.public_data()}
