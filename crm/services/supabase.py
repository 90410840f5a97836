"""
Cliente Supabase para operacoes de banco de dados.
"""
import logging
from functools import lru_cache

from supabase import Client, create_client

from crm.core.config import settings
from crm.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Retorna cliente Supabase cacheado.
    Usa service key para acesso completo; o isolamento por tenant
    e responsabilidade dos repositories.

    Raises:
        ConfigurationError: Se SUPABASE_URL ou SUPABASE_SERVICE_KEY faltarem
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_URL e SUPABASE_SERVICE_KEY sao obrigatorios")

    logger.info("Cliente Supabase criado")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY
    )
