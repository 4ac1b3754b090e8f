from datetime import datetime, timedelta

import pytest

from app import create_app
from config import TestingConfig
from models import db
from services import IssuanceEngine, VerificationEngine
from utils.errors import DeliveryError
from utils.record_store import OTPRecordStore


class FakeClock:
    def __init__(self, start=datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeDelivery:
    """Records sent codes; set `fail` to make send() raise."""

    def __init__(self):
        self.sent = []
        self.fail = None

    def send(self, email, otp):
        if self.fail is not None:
            raise self.fail
        self.sent.append((email, otp))

    @property
    def last_code(self):
        return self.sent[-1][1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def delivery():
    return FakeDelivery()


@pytest.fixture
def app(clock, delivery):
    app = create_app(TestingConfig, delivery=delivery, clock=clock)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return OTPRecordStore()


@pytest.fixture
def issuer(app, store, delivery, clock):
    return IssuanceEngine.from_config(app.config, store=store, delivery=delivery, clock=clock)


@pytest.fixture
def verifier(app, store, clock):
    return VerificationEngine.from_config(app.config, store=store, clock=clock)


@pytest.fixture
def smtp_down():
    return DeliveryError("SMTP unavailable")
