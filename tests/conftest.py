"""Shared fixtures: a controllable clock, in-memory storage and signed test tokens"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from jose import jwt

from pawstock.api.inventory_client import InventoryClient
from pawstock.auth.session_store import SessionStore
from pawstock.services.client_storage import MemoryStorage


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_token(**claims) -> str:
    payload = {"sub": "admin", "role": "admin", "id": 7}
    payload.update(claims)
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def backend_record(codigo=1, **overrides):
    record = {
        "codigo": codigo,
        "nombre": "Alimento Premium para Perros",
        "stock": 25,
        "precio": 45.99,
        "proveedorNombre": "Pet Food Co.",
        "umbralMinimo": 10,
        "stockBajo": False,
        "imagen": "/dog-food-bag.jpg",
        "descripcion": "Alimento balanceado para perros adultos",
    }
    record.update(overrides)
    return record


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def client():
    mock = MagicMock(spec=InventoryClient)
    mock.login.return_value = {"token": make_token()}
    mock.get_products.return_value = []
    mock.get_low_stock_products.return_value = []
    mock.get_notifications.return_value = []
    return mock


@pytest.fixture
def session_store(storage, client, clock):
    return SessionStore(storage, client, session_duration=timedelta(minutes=15), clock=clock)
