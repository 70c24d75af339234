import asyncio

import pytest

from app.services.config_resolver import DeliveryConfig
from app.services.delivery import DeliveryMessage, ResilientSender
from app.services.errors import DeliveryNotConfiguredError

CONFIG = DeliveryConfig(api_key="re_test_key", recipient="owner@pharmacy.example.com", sender_address="reports@pharmacy.example.com")
MESSAGE = DeliveryMessage(
    from_address="Pharmacy Sales Dashboard <reports@pharmacy.example.com>",
    to="owner@pharmacy.example.com",
    subject="Daily Sales Summary - 2025-02-17",
    html="<h2>Daily</h2>",
)


def test_first_attempt_success_does_not_sleep(fake_transport_factory, recording_sleep):
    transport = fake_transport_factory()
    outcome = asyncio.run(ResilientSender(transport, sleep=recording_sleep).send(CONFIG, MESSAGE))
    assert outcome.sent is True and outcome.attempts == 1 and outcome.error is None
    assert recording_sleep.delays == []
    api_key, payload = transport.calls[0]
    assert api_key == "re_test_key"
    assert payload == {
        "from": "Pharmacy Sales Dashboard <reports@pharmacy.example.com>",
        "to": "owner@pharmacy.example.com",
        "subject": "Daily Sales Summary - 2025-02-17",
        "html": "<h2>Daily</h2>",
    }


def test_fails_twice_then_succeeds(fake_transport_factory, recording_sleep):
    transport = fake_transport_factory(failures=2)
    outcome = asyncio.run(ResilientSender(transport, sleep=recording_sleep).send(CONFIG, MESSAGE))
    assert outcome.sent is True
    assert outcome.attempts == 3
    assert recording_sleep.delays == [2.0, 4.0]


def test_always_failing_exhausts_attempts(fake_transport_factory, recording_sleep):
    transport = fake_transport_factory(failures=99)
    outcome = asyncio.run(ResilientSender(transport, sleep=recording_sleep).send(CONFIG, MESSAGE))
    assert outcome.sent is False
    assert outcome.attempts == 3
    assert outcome.error == "simulated outage #3"
    assert len(transport.calls) == 3
    # Two inter-attempt delays, linear in the attempt number
    assert recording_sleep.delays == [2.0, 4.0]


def test_unexpected_exception_is_captured(recording_sleep):
    class Exploding:
        async def send(self, api_key, payload):
            raise ConnectionResetError("peer reset")

    outcome = asyncio.run(ResilientSender(Exploding(), max_attempts=2, base_delay_seconds=0.5, sleep=recording_sleep).send(CONFIG, MESSAGE))
    assert outcome.sent is False and outcome.attempts == 2
    assert outcome.error == "peer reset"
    assert recording_sleep.delays == [0.5]


@pytest.mark.parametrize(
    "config,missing",
    [
        (DeliveryConfig(api_key=None, recipient="owner@pharmacy.example.com", sender_address="x@y.z"), ["RESEND_API_KEY"]),
        (DeliveryConfig(api_key="re_key", recipient=None, sender_address="x@y.z"), ["ADMIN_EMAIL"]),
    ],
)
def test_missing_credentials_fail_before_any_attempt(fake_transport_factory, recording_sleep, config, missing):
    transport = fake_transport_factory()
    with pytest.raises(DeliveryNotConfiguredError) as exc_info:
        asyncio.run(ResilientSender(transport, sleep=recording_sleep).send(config, MESSAGE))
    assert exc_info.value.missing == missing
    assert transport.calls == []
    assert recording_sleep.delays == []


@pytest.mark.parametrize("max_attempts", [0, -1])
def test_max_attempts_below_one_rejected(fake_transport_factory, max_attempts):
    with pytest.raises(ValueError):
        ResilientSender(fake_transport_factory(), max_attempts=max_attempts)


def test_configured_max_attempts_below_one_rejected(fake_transport_factory, monkeypatch):
    import app.services.delivery as delivery
    monkeypatch.setitem(delivery.DELIVERY_RETRY_POLICY, "max_attempts", 0)
    with pytest.raises(ValueError):
        ResilientSender(fake_transport_factory())
