"""
Configuracao global de testes - Fixtures compartilhadas.

Banco: FakeSupabase (tests/fakes.py), em memoria.
Vendor: SimulatedVendorGateway com taxa de aceite fixa.
Linhas e settings: tests/factories.py
"""
import random

import pytest

from crm.services.container import ServiceContainer
from crm.services.vendor import SimulatedVendorGateway
from tests.factories import make_settings
from tests.fakes import FakeSupabase


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def accept_all_gateway(settings):
    return SimulatedVendorGateway(settings.VENDOR_CALLBACK_URL, accept_rate=1.0)


@pytest.fixture
def reject_all_gateway(settings):
    return SimulatedVendorGateway(settings.VENDOR_CALLBACK_URL, accept_rate=0.0)


@pytest.fixture
def seeded_gateway(settings):
    """Gateway com aceite de 90% e semente fixa."""
    return SimulatedVendorGateway(settings.VENDOR_CALLBACK_URL, rng=random.Random(42))


@pytest.fixture
def container(db, settings, accept_all_gateway):
    return ServiceContainer.build(db, settings, gateway=accept_all_gateway)
