from beanie import PydanticObjectId
from bson.errors import InvalidId
from email_validator import EmailNotValidError, validate_email
import json

from utils.errors import ValidationError

MIN_PASSWORD_LENGTH = 8


def check_email(email: str):
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Enter a valid email")


def check_password(password: str):
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Enter a strong password")


def parse_object_id(value: str, label: str) -> PydanticObjectId:
    # ObjectId(None) would mint a fresh id instead of failing
    if not value:
        raise ValidationError(f"Invalid {label} id")
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {label} id")


def parse_address(raw: str) -> dict:
    """Address arrives as a JSON string inside multipart form data."""
    try:
        address = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Invalid address format")
    if not isinstance(address, dict):
        raise ValidationError("Invalid address format")
    return address
