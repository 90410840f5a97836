"""
Tipos e enums para campanhas e logs de entrega.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class DeliveryStatus(str, Enum):
    """
    Status de um DeliveryLog.

    pending -> sent -> delivered | failed | bounced
    pending -> failed (vendor rejeitou o envio)
    """

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    BOUNCED = "bounced"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, new_status: "DeliveryStatus") -> bool:
        """Valida transicoes da maquina de estados."""
        return new_status in VALID_TRANSITIONS[self]


TERMINAL_STATUSES = frozenset({
    DeliveryStatus.DELIVERED,
    DeliveryStatus.FAILED,
    DeliveryStatus.BOUNCED,
})

VALID_TRANSITIONS: Dict[DeliveryStatus, frozenset] = {
    DeliveryStatus.PENDING: frozenset({DeliveryStatus.SENT, DeliveryStatus.FAILED}),
    DeliveryStatus.SENT: frozenset({
        DeliveryStatus.DELIVERED,
        DeliveryStatus.FAILED,
        DeliveryStatus.BOUNCED,
    }),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.FAILED: frozenset(),
    DeliveryStatus.BOUNCED: frozenset(),
}


class StatField(str, Enum):
    """Contadores armazenados na campanha (colunas stats_*)."""

    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    # rejeicao no envio: incrementa stats_rejected e stats_failed juntos
    REJECTED = "rejected"

    @classmethod
    def for_receipt(cls, status: DeliveryStatus) -> "StatField":
        """Contador incrementado por um recibo do vendor."""
        if status == DeliveryStatus.DELIVERED:
            return cls.DELIVERED
        return cls.FAILED


@dataclass
class DeliveryStats:
    """
    Contadores de entrega de uma campanha.

    Armazenados: sent, delivered, failed e rejected. attempted, pending e
    success_rate sao derivados.

    Um envio aceito conta em sent e depois em delivered ou failed (recibo).
    Um envio rejeitado pelo vendor conta em rejected e em failed, sem passar
    por sent. Cada log sai de pending exatamente uma vez, por sent ou por
    rejected, entao pending = audience - sent - rejected.
    """

    audience_size: int = 0
    sent: int = 0
    delivered: int = 0
    failed: int = 0
    rejected: int = 0

    @property
    def attempted(self) -> int:
        return self.delivered + self.failed

    @property
    def pending(self) -> int:
        return max(0, self.audience_size - self.sent - self.rejected)

    @property
    def success_rate(self) -> str:
        """Percentual de entregues sobre tentativas concluidas, com uma casa."""
        if self.attempted == 0:
            return "0.0%"
        return f"{self.delivered / self.attempted * 100:.1f}%"

    def to_dict(self) -> dict:
        return {
            "sent": self.sent,
            "delivered": self.delivered,
            "failed": self.failed,
            "attempted": self.attempted,
            "pending": self.pending,
            "successRate": self.success_rate,
        }


@dataclass
class CampaignData:
    """Dados de uma campanha."""

    id: str
    tenant_id: str
    name: str
    segment_id: str
    message: Optional[str] = None
    audience_size: int = 0
    stats_sent: int = 0
    stats_delivered: int = 0
    stats_failed: int = 0
    stats_rejected: int = 0
    launched_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def stats(self) -> DeliveryStats:
        return DeliveryStats(
            audience_size=self.audience_size,
            sent=self.stats_sent,
            delivered=self.stats_delivered,
            failed=self.stats_failed,
            rejected=self.stats_rejected,
        )

    @classmethod
    def from_db_row(cls, row: dict) -> "CampaignData":
        """Cria a partir de linha do banco."""
        return cls(
            id=str(row["id"]),
            tenant_id=str(row.get("tenant_id", "")),
            name=row.get("name", ""),
            segment_id=str(row.get("segment_id", "")),
            message=row.get("message"),
            audience_size=row.get("audience_size") or 0,
            stats_sent=row.get("stats_sent") or 0,
            stats_delivered=row.get("stats_delivered") or 0,
            stats_failed=row.get("stats_failed") or 0,
            stats_rejected=row.get("stats_rejected") or 0,
            launched_at=row.get("launched_at"),
            created_at=row.get("created_at"),
        )


@dataclass
class DeliveryLogData:
    """Registro de uma mensagem individual da campanha."""

    id: str
    campaign_id: str
    customer_id: str
    message: str
    status: DeliveryStatus = DeliveryStatus.PENDING
    vendor_message_id: Optional[str] = None
    vendor_response: Dict[str, Any] = field(default_factory=dict)
    failure_reason: Optional[str] = None
    sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_db_row(cls, row: dict) -> "DeliveryLogData":
        """Cria a partir de linha do banco."""
        return cls(
            id=str(row["id"]),
            campaign_id=str(row.get("campaign_id", "")),
            customer_id=str(row.get("customer_id", "")),
            message=row.get("message", ""),
            status=DeliveryStatus(row.get("status", DeliveryStatus.PENDING.value)),
            vendor_message_id=row.get("vendor_message_id"),
            vendor_response=row.get("vendor_response") or {},
            failure_reason=row.get("failure_reason"),
            sent_at=row.get("sent_at"),
            completed_at=row.get("completed_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


@dataclass
class ReceiptUpdate:
    """Recibo do vendor aguardando reconciliacao."""

    log_id: str
    status: DeliveryStatus
    vendor_message_id: Optional[str] = None
    reason: Optional[str] = None
    raw_payload: Dict[str, Any] = field(default_factory=dict)
    deferrals: int = 0


@dataclass
class LaunchResult:
    """Resposta do lancamento: o envio continua em background."""

    campaign_id: str
    name: str
    audience_size: int
    log_ids: List[str] = field(default_factory=list)
