"""
CRM Campaigns - API Principal
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm.api.error_handlers import register_exception_handlers
from crm.api.routes import campaigns, health, segments
from crm.core.config import Settings, settings as default_settings
from crm.core.logging import setup_logging
from crm.services.container import ServiceContainer
from crm.services.http_client import close_http_client
from crm.services.supabase import get_supabase_client

# Configurar logging
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia startup e shutdown da aplicacao."""
    app_settings: Settings = app.state.settings

    if app.state.container is None:
        app.state.container = ServiceContainer.build(get_supabase_client(), app_settings)

    container: ServiceContainer = app.state.container
    logger.info(f"Iniciando {app_settings.APP_NAME} (env={app_settings.APP_ENV})")
    await container.start()

    yield

    logger.info(f"Encerrando {app_settings.APP_NAME}")
    await container.stop()
    await close_http_client()


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Cria o app FastAPI.

    Args:
        container: Servicos ja montados (testes); None monta no startup
        settings: Configuracoes (default: carregadas do ambiente)
    """
    app_settings = settings or (container.settings if container else default_settings)

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Multi-tenant CRM campaign delivery pipeline",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(campaigns.router, prefix="/api")
    app.include_router(segments.router, prefix="/api")

    @app.get("/")
    async def root():
        """Endpoint raiz."""
        return {
            "app": app_settings.APP_NAME,
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()
