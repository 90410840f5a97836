"""
Verificacao de assinatura dos callbacks do vendor.

O vendor assina o corpo bruto com HMAC SHA256 usando o segredo
compartilhado e envia o hex no header X-Vendor-Signature (com ou sem o
prefixo "sha256=").
"""
import hashlib
import hmac
import logging

from crm.core.config import Settings
from crm.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Vendor-Signature"


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_vendor_signature(body: bytes, signature: str, settings: Settings) -> None:
    """
    Valida a assinatura do callback.

    Sem VENDOR_WEBHOOK_SECRET: aceita fora de producao (com warning) e
    rejeita em producao.

    Raises:
        AuthenticationError: assinatura ausente ou invalida
    """
    secret = settings.VENDOR_WEBHOOK_SECRET
    if not secret:
        if settings.is_production:
            logger.error("VENDOR_WEBHOOK_SECRET nao configurado em producao; recibo rejeitado")
            raise AuthenticationError("Unauthorized webhook call")
        logger.warning("VENDOR_WEBHOOK_SECRET nao configurado; assinatura nao verificada")
        return

    if not signature:
        logger.warning("Recibo sem assinatura do vendor")
        raise AuthenticationError("Unauthorized webhook call", details={"reason": "missing signature"})

    received = signature.strip()
    if received.startswith("sha256="):
        received = received[len("sha256="):]

    if not hmac.compare_digest(compute_signature(secret, body), received):
        logger.warning("Assinatura do vendor invalida")
        raise AuthenticationError("Unauthorized webhook call", details={"reason": "invalid signature"})
