import pytest
import requests

from app.schemas.orders_schemas import OrderRead
from app.services import email_service
from app.services.email_service import BrevoNotificationSender, is_valid_email
from conftest import make_order


class FakeResponse:
    def __init__(self, status_code=201, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture()
def calls(monkeypatch):
    recorded = []

    def fake_post(url, json=None, headers=None, timeout=None):
        recorded.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse()

    monkeypatch.setattr(email_service.requests, "post", fake_post)
    return recorded


@pytest.fixture()
def brevo():
    return BrevoNotificationSender(
        api_key="test-key",
        sender_email="orders@planti.tn",
        sender_name="Planti",
        recipients=["owner@planti.tn"],
    )


@pytest.fixture()
def order(session):
    return OrderRead.from_model(make_order(session, email="buyer@example.com", city="Sousse"))


def test_is_valid_email():
    assert is_valid_email("a@b.co")
    assert is_valid_email(["a@b.co", "c@d.tn"])
    assert not is_valid_email("")
    assert not is_valid_email("nobody")
    assert not is_valid_email(["a@b.co", "broken"])


def test_send_posts_to_brevo(brevo, order, calls):
    assert brevo.send(order) is True

    (call,) = calls
    assert call["url"] == email_service.BREVO_API_URL
    assert call["headers"]["api-key"] == "test-key"
    body = call["json"]
    assert body["to"] == [{"email": "owner@planti.tn"}]
    assert body["replyTo"] == {"email": "buyer@example.com"}
    assert body["subject"] == f"New order {order.order_number} - Sousse - 27.0TND"
    assert order.order_number in body["htmlContent"]
    assert "Basil" in body["htmlContent"]


def test_missing_api_key_skips_the_call(order, calls):
    sender = BrevoNotificationSender("", "orders@planti.tn", "Planti", ["owner@planti.tn"])

    assert sender.send(order) is False
    assert calls == []


def test_invalid_recipients_are_dropped(order, calls):
    sender = BrevoNotificationSender("k", "orders@planti.tn", "Planti", ["broken", "ok@planti.tn"])

    assert sender.send(order) is True
    assert calls[0]["json"]["to"] == [{"email": "ok@planti.tn"}]


def test_no_valid_recipients(order, calls):
    sender = BrevoNotificationSender("k", "orders@planti.tn", "Planti", ["broken"])

    assert sender.send(order) is False
    assert calls == []


def test_error_status_is_a_failure(brevo, order, monkeypatch):
    monkeypatch.setattr(
        email_service.requests, "post", lambda *a, **kw: FakeResponse(401, "unauthorized")
    )

    assert brevo.send(order) is False


def test_network_error_is_a_failure(brevo, order, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(email_service.requests, "post", boom)

    assert brevo.send(order) is False
