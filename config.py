import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    mongodb_uri: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    mongodb_db: str = os.getenv("MONGODB_DB", "clinic_db")

    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
    )

    admin_email: str = os.getenv("ADMIN_EMAIL", "")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "")

    cloudinary_cloud_name: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    cloudinary_api_key: str = os.getenv("CLOUDINARY_API_KEY", "")
    cloudinary_api_secret: str = os.getenv("CLOUDINARY_API_SECRET", "")

    stripe_secret_key: str = os.getenv("STRIPE_SECRET_KEY", "")
    currency: str = os.getenv("CURRENCY", "usd")
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    cors_origins: List[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    ]
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
