import asyncio
from types import SimpleNamespace

import pytest
import stripe


@pytest.fixture()
def stripe_sessions(monkeypatch):
    """
    In-memory stand-in for Stripe Checkout Sessions.
    """
    sessions = {}

    def fake_create(**kwargs):
        session = SimpleNamespace(
            id=f"cs_test_{len(sessions) + 1}",
            url="https://checkout.stripe.com/pay/cs_test",
            amount_total=kwargs["line_items"][0]["price_data"]["unit_amount"],
            currency=kwargs["line_items"][0]["price_data"]["currency"],
            client_reference_id=kwargs["client_reference_id"],
            payment_status="unpaid",
        )
        sessions[session.id] = session
        return session

    def fake_retrieve(session_id, **kwargs):
        if session_id not in sessions:
            raise stripe.InvalidRequestError(f"No such checkout.session: {session_id}", "id")
        return sessions[session_id]

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake_retrieve)
    return sessions


@pytest.fixture()
def appointment_id(user_headers, doctor_id, book):
    return book(user_headers, doctor_id)["appointment_id"]


def _create_order(client, headers, appointment_id):
    return client.post(
        "/api/user/payment", json={"appointment_id": appointment_id}, headers=headers
    ).json()


def _verify(client, headers, order_id):
    return client.post(
        "/api/user/verify-payment", json={"order_id": order_id}, headers=headers
    ).json()


def test_create_order_charges_fee_in_minor_units(client, user_headers, appointment_id, stripe_sessions):
    body = _create_order(client, user_headers, appointment_id)
    assert body["success"] is True
    order = body["order"]
    assert order["amount"] == 5000
    assert order["currency"] == "usd"
    assert order["receipt"] == appointment_id
    assert order["id"] in stripe_sessions


def test_create_order_for_cancelled_appointment(client, user_headers, appointment_id, stripe_sessions):
    client.post(
        "/api/user/cancel-appointment",
        json={"appointment_id": appointment_id},
        headers=user_headers,
    )
    body = _create_order(client, user_headers, appointment_id)
    assert body == {"success": False, "message": "Appointment Cancelled or does not exist"}
    assert stripe_sessions == {}


def test_create_order_for_missing_appointment(client, user_headers, stripe_sessions):
    body = _create_order(client, user_headers, "65a000000000000000000000")
    assert body == {"success": False, "message": "Appointment Cancelled or does not exist"}


def test_paid_order_marks_appointment_paid(
    client, user_headers, appointment_id, stripe_sessions, load_appointment
):
    order = _create_order(client, user_headers, appointment_id)["order"]
    stripe_sessions[order["id"]].payment_status = "paid"

    body = _verify(client, user_headers, order["id"])
    assert body == {"success": True, "message": "Payment Successful"}
    assert load_appointment(appointment_id).payment is True

    # Replaying the verification leaves the flag as it is
    assert _verify(client, user_headers, order["id"])["success"] is True
    assert load_appointment(appointment_id).payment is True


def test_unpaid_order_leaves_appointment_unpaid(
    client, user_headers, appointment_id, stripe_sessions, load_appointment
):
    order = _create_order(client, user_headers, appointment_id)["order"]

    body = _verify(client, user_headers, order["id"])
    assert body == {"success": False, "message": "Payment Failed"}
    assert load_appointment(appointment_id).payment is False


def test_gateway_errors_become_failures(client, user_headers, stripe_sessions):
    body = _verify(client, user_headers, "cs_test_unknown")
    assert body["success"] is False
    assert "No such checkout.session" in body["message"]


def test_payment_snapshot_is_untouched_by_payment(
    client, user_headers, appointment_id, stripe_sessions, load_appointment
):
    before = load_appointment(appointment_id)
    order = _create_order(client, user_headers, appointment_id)["order"]
    stripe_sessions[order["id"]].payment_status = "paid"
    _verify(client, user_headers, order["id"])

    after = load_appointment(appointment_id)
    assert after.doc_data == before.doc_data
    assert after.user_data == before.user_data
    assert after.amount == before.amount


def test_paid_order_without_matching_appointment(client, user_headers, stripe_sessions):
    stripe_sessions["cs_test_orphan"] = SimpleNamespace(
        id="cs_test_orphan",
        client_reference_id="65a000000000000000000000",
        payment_status="paid",
    )
    body = _verify(client, user_headers, "cs_test_orphan")
    assert body == {"success": False, "message": "Appointment not found"}


def test_stripe_error_while_creating_order(client, user_headers, appointment_id, monkeypatch):
    def failing_create(**kwargs):
        raise stripe.APIConnectionError("Could not connect to Stripe")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)

    body = _create_order(client, user_headers, appointment_id)
    assert body["success"] is False
    assert "Could not connect to Stripe" in body["message"]


def test_gateway_calls_run_outside_the_event_loop(
    client, user_headers, appointment_id, stripe_sessions, monkeypatch
):
    calls = []
    create = stripe.checkout.Session.create

    def create_in_worker(**kwargs):
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        calls.append(kwargs["client_reference_id"])
        return create(**kwargs)

    monkeypatch.setattr(stripe.checkout.Session, "create", create_in_worker)

    assert _create_order(client, user_headers, appointment_id)["success"] is True
    assert calls == [appointment_id]
