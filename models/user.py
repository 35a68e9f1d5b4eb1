from beanie import Document, Indexed
from pydantic import Field
from typing import Any, Dict

DEFAULT_AVATAR = "https://res.cloudinary.com/demo/image/upload/avatar.png"


class User(Document):
    name: str
    email: Indexed(str, unique=True)
    password: str
    image: str = DEFAULT_AVATAR
    address: Dict[str, Any] = Field(default_factory=lambda: {"line1": "", "line2": ""})
    gender: str = "Not Selected"
    dob: str = "Not Selected"
    phone: str = "0000000000"

    class Settings:
        name = "users"

    def public_data(self) -> Dict[str, Any]:
        return self.model_dump(
            mode="json", by_alias=True, exclude={"password", "revision_id"}
        )
