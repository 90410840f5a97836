"""
Parse de recibos de entrega do vendor.

Validacao minima: o recibo so e enfileirado aqui, quem toca o banco e o
reconciliador.
"""
from typing import Any, Dict, Optional

from crm.core.exceptions import ValidationError
from crm.core.ids import parse_uuid
from crm.services.campaigns.types import DeliveryStatus, ReceiptUpdate
from crm.services.vendor.simulated import generate_message_id

RECEIPT_STATUSES = frozenset({
    DeliveryStatus.DELIVERED,
    DeliveryStatus.FAILED,
    DeliveryStatus.BOUNCED,
})

SIMULATED_FAILURE_REASON = "Recipient unavailable"


def parse_receipt(payload: Any, log_id: Optional[str] = None) -> ReceiptUpdate:
    """
    Converte o corpo do callback em ReceiptUpdate.

    Args:
        payload: JSON do vendor {message_id, status, reason?|error_message?, reference_id?}
        log_id: logId da query string (tem prioridade sobre reference_id)

    Raises:
        ValidationError: corpo invalido, log id ausente ou mal formado,
            sem message_id ou status desconhecido
    """
    if not isinstance(payload, dict):
        raise ValidationError("Receipt body must be a JSON object")

    raw_target = log_id or payload.get("reference_id")
    if not raw_target:
        raise ValidationError("Missing logId or reference_id")
    target = parse_uuid(raw_target)
    if not target:
        raise ValidationError("Invalid logId", details={"logId": raw_target})

    message_id = payload.get("message_id")
    if not message_id:
        raise ValidationError("Invalid receipt: message_id is required")

    try:
        status = DeliveryStatus(str(payload.get("status", "")).lower())
    except ValueError:
        status = None
    if status not in RECEIPT_STATUSES:
        raise ValidationError(
            "Invalid receipt status",
            details={
                "status": payload.get("status"),
                "allowed": sorted(s.value for s in RECEIPT_STATUSES),
            },
        )

    return ReceiptUpdate(
        log_id=target,
        status=status,
        vendor_message_id=str(message_id),
        reason=payload.get("reason") or payload.get("error_message"),
        raw_payload=payload,
    )


def simulated_receipt(log_id: str, success: bool, timestamp: str) -> ReceiptUpdate:
    """Recibo sintetico para testes manuais fora de producao."""
    payload: Dict[str, Any] = {
        "message_id": generate_message_id(),
        "reference_id": log_id,
        "status": DeliveryStatus.DELIVERED.value if success else DeliveryStatus.FAILED.value,
        "timestamp": timestamp,
    }
    if not success:
        payload["reason"] = SIMULATED_FAILURE_REASON
    return parse_receipt(payload, log_id)
