import asyncio
import json
import os

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_EMAIL", "admin@clinic.com")
os.environ.setdefault("ADMIN_PASSWORD", "admin-password")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("MONGODB_DB", "clinic_test")

UPLOADED_URL = "https://res.cloudinary.com/test/image/upload/avatar.png"


def run(coro):
    """Drive a coroutine from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture(autouse=True)
def db():
    """
    Fresh in-memory MongoDB for every test.
    """
    from mongomock_motor import AsyncMongoMockClient
    from database import connect_to_mongo

    client = AsyncMongoMockClient()
    run(connect_to_mongo(client))
    return client


@pytest.fixture(autouse=True)
def fake_cloudinary(monkeypatch):
    import cloudinary.uploader

    uploads = []

    def fake_upload(file, **kwargs):
        uploads.append(kwargs)
        return {"secure_url": UPLOADED_URL}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    return uploads


@pytest.fixture()
def app():
    from main import app as clinic_app

    return clinic_app


@pytest.fixture()
def client(app):
    # No context manager: startup would try to reach a real MongoDB.
    return TestClient(app)


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register(client):
    """
    Register a user and return auth headers for it.
    """

    def _register(email="patient@clinic.com", name="Pat Patient", password="password123"):
        r = client.post(
            "/api/user/register",
            json={"name": name, "email": email, "password": password},
        )
        body = r.json()
        assert body["success"], body
        return _bearer(body["token"])

    return _register


@pytest.fixture()
def user_headers(register):
    return register()


@pytest.fixture()
def other_user_headers(register):
    return register(email="someone.else@clinic.com", name="Someone Else")


@pytest.fixture()
def admin_headers(client):
    from config import settings

    r = client.post(
        "/api/admin/login",
        json={"email": settings.admin_email, "password": settings.admin_password},
    )
    body = r.json()
    assert body["success"], body
    return _bearer(body["token"])


DOCTOR_FORM = {
    "name": "Dr. Richard James",
    "email": "richard@clinic.com",
    "password": "doctor-pass",
    "speciality": "General physician",
    "degree": "MBBS",
    "experience": "4 Years",
    "about": "Focuses on preventive care.",
    "fees": "50",
    "address": json.dumps({"line1": "17th Cross", "line2": "Richmond"}),
}


@pytest.fixture()
def add_doctor(client, admin_headers):
    """
    Add a doctor through the admin API and return its id.
    """

    def _add_doctor(**overrides):
        form = dict(DOCTOR_FORM, **overrides)
        r = client.post(
            "/api/admin/add-doctor",
            data=form,
            files={"image": ("doctor.png", b"\x89PNG fake", "image/png")},
            headers=admin_headers,
        )
        body = r.json()
        assert body["success"], body
        return body["doctor_id"]

    return _add_doctor


@pytest.fixture()
def doctor_id(add_doctor):
    return add_doctor()


@pytest.fixture()
def load_doctor():
    from beanie import PydanticObjectId
    from models.doctor import Doctor

    return lambda doc_id: run(Doctor.get(PydanticObjectId(doc_id)))


@pytest.fixture()
def load_appointment():
    from beanie import PydanticObjectId
    from models.appointment import Appointment

    return lambda appointment_id: run(Appointment.get(PydanticObjectId(appointment_id)))


@pytest.fixture()
def book(client):
    def _book(headers, doc_id, slot_date="2024-01-10", slot_time="10:00"):
        r = client.post(
            "/api/user/book-appointment",
            json={"doc_id": doc_id, "slot_date": slot_date, "slot_time": slot_time},
            headers=headers,
        )
        return r.json()

    return _book
