"""
Repository para DeliveryLogs.

Toda mudanca de status e um update condicional no status atual esperado
(update ... where status in (...)). Se nenhuma linha foi afetada, a
transicao nao aconteceu e o chamador nao deve mexer nos contadores.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from crm.core.timezone import agora_utc
from crm.services.campaigns.types import DeliveryLogData, DeliveryStatus

from .base import BaseRepository

logger = logging.getLogger(__name__)


class DeliveryLogRepository(BaseRepository[DeliveryLogData]):
    """Repository para operacoes de DeliveryLog."""

    def __init__(self, db_client, insert_chunk: int = 500, page_size: int = 1000):
        super().__init__(db_client)
        self.insert_chunk = insert_chunk
        self.page_size = page_size

    @property
    def table_name(self) -> str:
        return "delivery_logs"

    async def create_many(self, rows: Iterable[Dict[str, Any]]) -> List[DeliveryLogData]:
        """
        Cria logs pendentes em lote.

        Args:
            rows: Dicts com campaign_id, customer_id e message

        Returns:
            Logs criados, na ordem de entrada
        """
        now = agora_utc().isoformat()
        payload = [
            {
                **row,
                "status": DeliveryStatus.PENDING.value,
                "created_at": now,
                "updated_at": now,
            }
            for row in rows
        ]

        created: List[DeliveryLogData] = []
        for start in range(0, len(payload), self.insert_chunk):
            chunk = payload[start:start + self.insert_chunk]
            response = self._execute(
                self.table().insert(chunk),
                "criar logs de entrega",
                campaign_id=chunk[0].get("campaign_id"),
                quantidade=len(chunk),
            )
            created.extend(DeliveryLogData.from_db_row(r) for r in self._rows(response))

        return created

    async def get(self, log_id: str) -> Optional[DeliveryLogData]:
        """Busca log por ID."""
        response = self._execute(
            self.table().select("*").eq("id", log_id).limit(1),
            "buscar log de entrega",
            log_id=log_id,
        )
        row = self._first(response)
        return DeliveryLogData.from_db_row(row) if row else None

    async def list_by_campaign(self, campaign_id: str) -> List[DeliveryLogData]:
        """Todos os logs da campanha, paginando."""
        logs: List[DeliveryLogData] = []
        offset = 0
        while True:
            response = self._execute(
                self.table()
                .select("*")
                .eq("campaign_id", campaign_id)
                .order("id")
                .range(offset, offset + self.page_size - 1),
                "listar logs de entrega",
                campaign_id=campaign_id,
            )
            rows = self._rows(response)
            logs.extend(DeliveryLogData.from_db_row(r) for r in rows)
            if len(rows) < self.page_size:
                return logs
            offset += self.page_size

    async def delete_by_campaign(self, campaign_id: str) -> int:
        """Remove os logs da campanha. Retorna quantos foram removidos."""
        response = self._execute(
            self.table().delete().eq("campaign_id", campaign_id),
            "remover logs de entrega",
            campaign_id=campaign_id,
        )
        return len(self._rows(response))

    async def _transition(
        self,
        log_id: str,
        expected: Iterable[DeliveryStatus],
        payload: Dict[str, Any],
    ) -> bool:
        expected_values = [s.value for s in expected]
        response = self._execute(
            self.table()
            .update({**payload, "updated_at": agora_utc().isoformat()})
            .eq("id", log_id)
            .in_("status", expected_values),
            f"mudar status para {payload['status']}",
            log_id=log_id,
        )
        applied = bool(response.data)
        if not applied:
            logger.warning(
                f"Transicao ignorada para log {log_id}: status atual fora de {expected_values}",
                extra={"log_id": log_id, "novo_status": payload["status"]},
            )
        return applied

    async def mark_sent(
        self,
        log_id: str,
        vendor_message_id: Optional[str],
        vendor_response: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """pending -> sent (vendor aceitou)."""
        return await self._transition(log_id, [DeliveryStatus.PENDING], {
            "status": DeliveryStatus.SENT.value,
            "vendor_message_id": vendor_message_id,
            "vendor_response": vendor_response or {},
            "sent_at": agora_utc().isoformat(),
        })

    async def mark_send_failed(
        self,
        log_id: str,
        reason: Optional[str],
        vendor_response: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """pending -> failed (vendor rejeitou ou timeout)."""
        return await self._transition(log_id, [DeliveryStatus.PENDING], {
            "status": DeliveryStatus.FAILED.value,
            "failure_reason": reason,
            "vendor_response": vendor_response or {},
            "completed_at": agora_utc().isoformat(),
        })

    async def apply_receipt(
        self,
        log_id: str,
        status: DeliveryStatus,
        vendor_message_id: Optional[str] = None,
        reason: Optional[str] = None,
        vendor_response: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        sent -> delivered | failed | bounced (recibo do vendor).

        Somente a partir de sent: recibo repetido ou atrasado nunca
        sobrescreve um status terminal.
        """
        payload: Dict[str, Any] = {
            "status": status.value,
            "vendor_response": vendor_response or {},
            "completed_at": agora_utc().isoformat(),
        }
        if vendor_message_id:
            payload["vendor_message_id"] = vendor_message_id
        if status != DeliveryStatus.DELIVERED:
            payload["failure_reason"] = reason

        return await self._transition(log_id, [DeliveryStatus.SENT], payload)

    async def summarize(self, campaign_id: str) -> Dict[str, int]:
        """
        Conta os logs da campanha para o reparo de estatisticas.

        sent: logs aceitos pelo vendor (tem sent_at)
        delivered: status delivered
        failed: status failed ou bounced
        rejected: failed sem sent_at (vendor recusou o envio)
        """
        summary = {"sent": 0, "delivered": 0, "failed": 0, "rejected": 0}
        for log in await self.list_by_campaign(campaign_id):
            if log.sent_at:
                summary["sent"] += 1
            if log.status == DeliveryStatus.DELIVERED:
                summary["delivered"] += 1
            elif log.status in (DeliveryStatus.FAILED, DeliveryStatus.BOUNCED):
                summary["failed"] += 1
                if not log.sent_at:
                    summary["rejected"] += 1
        return summary
