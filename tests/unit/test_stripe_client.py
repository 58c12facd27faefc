import hashlib
import hmac
import json
import time

import pytest
import stripe

from vendgb import config
from vendgb.errors import PaymentServiceUnavailable, SignatureVerificationError, ValidationError
from vendgb.payments import stripe_client

WEBHOOK_SECRET = "whsec_test_secret"


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    ts = timestamp or int(time.time())
    signed = f"{ts}.".encode("utf-8") + payload
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"

def _payload(event_type="payment_intent.succeeded") -> bytes:
    return json.dumps({
        "id": "evt_1",
        "object": "event",
        "type": event_type,
        "data": {"object": {
            "id": "pi_1",
            "object": "payment_intent",
            "status": "succeeded",
            "metadata": {"orderId": "o1"},
        }},
    }).encode("utf-8")

def test_require_stripe_sets_api_key(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_abc")
    assert stripe_client.require_stripe() is stripe
    assert stripe.api_key == "sk_test_abc"

def test_require_stripe_without_key(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "")
    with pytest.raises(PaymentServiceUnavailable):
        stripe_client.require_stripe()

def test_parse_event_valid_signature(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = _payload()
    event = stripe_client.parse_event(payload, _sign(payload))
    assert event["type"] == "payment_intent.succeeded"

def test_parse_event_bad_signature(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = _payload()
    with pytest.raises(SignatureVerificationError):
        stripe_client.parse_event(payload, _sign(payload, secret="whsec_other"))

def test_parse_event_missing_signature(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    with pytest.raises(SignatureVerificationError):
        stripe_client.parse_event(_payload(), None)

def test_parse_event_without_secret_reads_json(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    event = stripe_client.parse_event(_payload("charge.refunded"), None)
    assert event["type"] == "charge.refunded"

def test_parse_event_invalid_json(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "")
    with pytest.raises(ValidationError):
        stripe_client.parse_event(b"not json", None)

def test_create_payment_intent_connection_error(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_abc")

    def _boom(**kwargs):
        raise stripe.APIConnectionError("network down")
    monkeypatch.setattr(stripe.PaymentIntent, "create", _boom)
    with pytest.raises(PaymentServiceUnavailable):
        stripe_client.create_payment_intent(amount=100, currency="gbp", metadata={"orderId": "o1"})

def test_parse_event_signed_returns_plain_dict(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = _payload()
    event = stripe_client.parse_event(payload, _sign(payload))
    assert type(event) is dict
    intent = event["data"]["object"]
    assert type(intent) is dict
    assert intent.get("metadata", {}).get("orderId") == "o1"
    assert event.get("type") == "payment_intent.succeeded"

def test_retrieve_payment_intent_returns_plain_dict(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_abc")
    sdk_intent = stripe.PaymentIntent.construct_from(
        {"id": "pi_1", "object": "payment_intent", "status": "succeeded", "amount": 1798, "metadata": {"orderId": "o1"}},
        "sk_test_abc",
    )
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id, **kwargs: sdk_intent)
    intent = stripe_client.retrieve_payment_intent("pi_1")
    assert type(intent) is dict
    assert intent.get("status") == "succeeded"
    assert intent["metadata"]["orderId"] == "o1"

def test_create_payment_intent_returns_plain_dict(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_abc")
    calls = []

    def _create(**kwargs):
        calls.append(kwargs)
        return stripe.PaymentIntent.construct_from(
            {"id": "pi_2", "object": "payment_intent", "client_secret": "pi_2_secret", "amount": kwargs["amount"],
             "currency": kwargs["currency"], "metadata": kwargs["metadata"]},
            "sk_test_abc",
        )
    monkeypatch.setattr(stripe.PaymentIntent, "create", _create)
    intent = stripe_client.create_payment_intent(
        amount=1798, currency="gbp", metadata={"orderId": "o1"}, idempotency_key="pi-o1-1798",
    )
    assert type(intent) is dict
    assert intent.get("client_secret") == "pi_2_secret"
    assert calls[0]["idempotency_key"] == "pi-o1-1798"
