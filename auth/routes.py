from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from pymongo.errors import DuplicateKeyError
import logging

from schemas.user import UserRegister, UserLogin, TokenResponse
from models.user import User
from auth.auth_handler import ADMIN_ROLE, create_access_token, hash_password, verify_password
from config import settings
from utils.errors import AuthError, ConflictError, NotFoundError, ValidationError
from utils.validators import check_email, check_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/user/register", response_model=TokenResponse)
async def register(user: UserRegister):
    if not user.name or not user.email or not user.password:
        raise ValidationError("Missing Details")
    check_email(user.email)
    check_password(user.password)

    if await User.find_one(User.email == user.email):
        raise ConflictError("Email already registered")

    new_user = User(
        name=user.name,
        email=user.email,
        password=await run_in_threadpool(hash_password, user.password),
    )
    try:
        await new_user.insert()
    except DuplicateKeyError:
        # Lost a race against a concurrent registration for the same email
        raise ConflictError("Email already registered")

    logger.info(f"Registered user {new_user.id}")
    return TokenResponse(token=create_access_token(str(new_user.id)))


@router.post("/user/login", response_model=TokenResponse)
async def login(user: UserLogin):
    if not user.email or not user.password:
        raise ValidationError("Missing Details")

    db_user = await User.find_one(User.email == user.email)
    if not db_user:
        raise NotFoundError("User does not exist")
    if not await run_in_threadpool(verify_password, user.password, db_user.password):
        raise AuthError("Invalid credentials")

    return TokenResponse(token=create_access_token(str(db_user.id)))


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(credentials: UserLogin):
    # Unset admin credentials must never match an empty login
    if (
        not settings.admin_email
        or credentials.email != settings.admin_email
        or credentials.password != settings.admin_password
    ):
        raise AuthError("Invalid credentials")

    logger.info("Admin logged in")
    return TokenResponse(token=create_access_token(settings.admin_email, role=ADMIN_ROLE))
