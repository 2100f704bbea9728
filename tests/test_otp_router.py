import pytest
from fastapi.testclient import TestClient

from qr_event.application.ports.otp_delivery import DeliveryResult
from qr_event.config import Settings
from qr_event.main import build_otp_service, create_app
from qr_event.infrastructure.otp.memory_store import InMemoryOTPStore

PHONE = "+911234567890"


class RecordingDelivery:
    channel = "WhatsApp"

    def __init__(self, result=None):
        self.result = result or DeliveryResult(sent=True)
        self.codes = {}

    async def send(self, phone, code):
        self.codes[phone] = code
        return self.result


def make_client(env="development", delivery=None, **overrides):
    settings = Settings(ENV=env, OTP_DELIVERY_CHANNEL="log", **overrides)
    delivery = delivery or RecordingDelivery()
    service = build_otp_service(settings, store=InMemoryOTPStore(), delivery=delivery)
    return TestClient(create_app(settings=settings, otp_service=service)), delivery


@pytest.fixture
def client_and_delivery():
    client, delivery = make_client()
    with client:
        yield client, delivery


def test_request_then_verify_once(client_and_delivery):
    client, delivery = client_and_delivery
    resp = client.post("/otp/request", json={"phone": PHONE})
    assert resp.status_code == 200
    body = resp.json()
    assert body == {"ok": True, "whatsappSent": True, "message": "OTP sent successfully via WhatsApp"}

    code = delivery.codes[PHONE]
    assert code not in resp.text
    assert client.post("/otp/verify", json={"phone": PHONE, "code": code}).json() == {"ok": True}
    assert client.post("/otp/verify", json={"phone": PHONE, "code": code}).json() == {"ok": False}


def test_request_reports_delivery_failure():
    client, _ = make_client(delivery=RecordingDelivery(DeliveryResult(sent=False, error="HTTP 500")))
    resp = client.post("/otp/request", json={"phone": PHONE})
    assert resp.status_code == 200
    assert resp.json() == {
        "ok": True,
        "whatsappSent": False,
        "message": "OTP generated but WhatsApp send failed: HTTP 500",
        "error": "HTTP 500",
    }


def test_verify_unknown_phone_is_false(client_and_delivery):
    client, _ = client_and_delivery
    resp = client.post("/otp/verify", json={"phone": PHONE, "code": "123456"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": False}


def test_verify_rejects_malformed_code(client_and_delivery):
    client, _ = client_and_delivery
    assert client.post("/otp/verify", json={"phone": PHONE, "code": "123"}).status_code == 422


def test_request_rejects_short_phone(client_and_delivery):
    client, _ = client_and_delivery
    assert client.post("/otp/request", json={"phone": "123"}).status_code == 422


def test_request_rate_limited():
    client, _ = make_client(OTP_REQUEST_MAX_PER_PHONE=1)
    assert client.post("/otp/request", json={"phone": PHONE}).status_code == 200
    resp = client.post("/otp/request", json={"phone": PHONE})
    assert resp.status_code == 429
    assert resp.json()["success"] is False
    assert "Too many OTP requests" in resp.json()["error"]


def test_debug_peek_outside_production(client_and_delivery):
    client, delivery = client_and_delivery
    assert client.get("/otp/debug", params={"phone": PHONE}).json() == {"phone": PHONE, "otp": None}
    client.post("/otp/request", json={"phone": PHONE})
    resp = client.get("/otp/debug", params={"phone": PHONE})
    assert resp.json() == {"phone": PHONE, "otp": delivery.codes[PHONE]}
    # peeking does not consume
    assert client.post("/otp/verify", json={"phone": PHONE, "code": delivery.codes[PHONE]}).json() == {"ok": True}


def test_debug_hidden_in_production():
    client, _ = make_client(env="production")
    client.post("/otp/request", json={"phone": PHONE})
    resp = client.get("/otp/debug", params={"phone": PHONE})
    assert resp.status_code == 404
    assert "otp" not in resp.json()


def test_health_and_security_headers(client_and_delivery):
    client, _ = client_and_delivery
    resp = client.get("/health")
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Request-ID"]


def test_forwarded_for_header_does_not_reset_address_limit():
    client, _ = make_client(OTP_REQUEST_MAX_PER_IP=1)
    statuses = [
        client.post(
            "/otp/request",
            json={"phone": f"+9112345678{i:02d}"},
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        ).status_code
        for i in range(5)
    ]
    assert statuses == [200, 429, 429, 429, 429]


def test_openapi_documents_channel_neutral_sent_flag(client_and_delivery):
    client, _ = client_and_delivery
    schema = client.get("/openapi.json").json()
    field = schema["components"]["schemas"]["OTPRequestResponse"]["properties"]["whatsappSent"]
    assert "SMS" in field["description"]
