"""
Configuracoes da aplicacao.
Carrega variaveis de ambiente.
"""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuracoes carregadas do .env"""

    # App
    APP_NAME: str = "CRM Campaigns"
    LOG_LEVEL: str = "INFO"

    # APP_ENV: "production" | "dev"
    # Fora de producao o endpoint de simulate-callback fica habilitado
    APP_ENV: str = "dev"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Vendor de mensagens
    # VENDOR_MODE: "http" chama o vendor real, "simulated" aceita/rejeita localmente
    VENDOR_MODE: str = "simulated"
    VENDOR_API_URL: str = "https://api.dummy-messaging-vendor.com/v1"
    VENDOR_API_KEY: str = ""
    VENDOR_CALLBACK_URL: str = "http://localhost:8000/api/campaigns/delivery-receipt"
    VENDOR_TIMEOUT_SECONDS: float = 10.0
    VENDOR_SIMULATED_ACCEPT_RATE: float = 0.9
    VENDOR_WEBHOOK_SECRET: str = ""

    # Pipeline de entrega
    DISPATCH_MAX_CONCURRENCY: int = 20
    RECEIPT_TICK_SECONDS: float = 5.0
    RECEIPT_MAX_DEFERRALS: int = 3
    SHUTDOWN_DRAIN_SECONDS: float = 30.0

    # Limites de query
    PREVIEW_SAMPLE_SIZE: int = 100
    DELIVERY_LOG_INSERT_CHUNK: int = 500
    CUSTOMER_PAGE_SIZE: int = 1000

    # Mensagem usada quando a campanha nao tem template
    DEFAULT_MESSAGE_TEMPLATE: str = "Hi {NAME}, here's 10% off on your next order!"

    # CORS - origens permitidas (separadas por virgula)
    CORS_ORIGINS: str = "*"

    @property
    def is_production(self) -> bool:
        """Retorna True se esta em producao (APP_ENV == 'production')."""
        return self.APP_ENV.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Retorna lista de origens CORS permitidas.

        Em producao, deve ser configurado explicitamente.
        """
        if self.CORS_ORIGINS == "*":
            if self.is_production:
                logging.warning(
                    "CORS_ORIGINS='*' em producao. "
                    "Configure origens especificas para maior seguranca."
                )
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Retorna instancia cacheada das configuracoes."""
    return Settings()


settings = get_settings()
