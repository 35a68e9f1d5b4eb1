from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from models.user import User
from models.doctor import Doctor
from models.appointment import Appointment
from config import settings
import logging

logger = logging.getLogger(__name__)


async def connect_to_mongo(client=None):
    if client is None:
        client = AsyncIOMotorClient(settings.mongodb_uri)
    db = client[settings.mongodb_db]
    await init_beanie(database=db, document_models=[User, Doctor, Appointment])
    logger.info(f"Connected to MongoDB database {settings.mongodb_db}")
    return client
