"""
Dependencias compartilhadas pelas rotas.

O container e criado no lifespan (ou injetado em create_app nos testes)
e fica em app.state.container.
"""
from fastapi import Request

from crm.core.exceptions import ConfigurationError
from crm.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise ConfigurationError("Service container not initialized")
    return container
