"""
HTTP client singleton com connection pooling.

Usado pelo gateway do vendor de mensagens. Fechado no shutdown da
aplicacao.
"""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None


async def get_http_client() -> httpx.AsyncClient:
    """
    Obtem o cliente HTTP singleton.

    Timeout por chamada e definido por quem chama; os valores aqui sao
    o teto padrao.
    """
    global _client
    if _client is None:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=5.0, read=15.0, write=15.0, pool=5.0),
            limits=httpx.Limits(
                max_connections=100,
                max_keepalive_connections=20,
                keepalive_expiry=30.0,
            ),
            http2=True,
            headers={"User-Agent": "CRM-Campaigns/1.0"},
        )
        logger.info("HTTP client singleton criado")

    return _client


async def close_http_client() -> None:
    """Fecha o cliente HTTP. Chamado no shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("HTTP client singleton fechado")
