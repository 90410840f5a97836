"""
Fixtures das rotas: app com container em memoria e tenant fixo.
"""
import pytest
from fastapi.testclient import TestClient

from crm.core.auth import TenantContext, get_current_tenant
from crm.main import create_app
from tests.factories import TENANT_A


def authenticate_as(app, tenant_id: str) -> None:
    """Substitui a validacao do token do Supabase por um tenant fixo."""
    app.dependency_overrides[get_current_tenant] = lambda: TenantContext(tenant_id=tenant_id)


@pytest.fixture
def app(container):
    app = create_app(container=container)
    authenticate_as(app, TENANT_A)
    return app


@pytest.fixture
def client(app):
    """Cliente com lifespan: reconciliador iniciado, drain no fim."""
    with TestClient(app) as client:
        yield client
