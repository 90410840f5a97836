"""
Repository para Campaigns.

Contadores de entrega so mudam via RPC (incremento atomico no banco).
Nunca fazer read-modify-write de stats_* aqui.
"""

import logging
from datetime import datetime
from typing import List, Optional

from crm.core.timezone import agora_utc
from crm.services.campaigns.types import CampaignData, StatField

from .base import BaseRepository

logger = logging.getLogger(__name__)


class CampaignRepository(BaseRepository[CampaignData]):
    """Repository para operacoes de Campaign."""

    @property
    def table_name(self) -> str:
        return "campaigns"

    async def create(
        self,
        tenant_id: str,
        name: str,
        segment_id: str,
        message: str,
        audience_size: int,
        launched_at: Optional[datetime] = None,
    ) -> CampaignData:
        """Cria campanha com contadores zerados."""
        now = agora_utc()
        response = self._execute(
            self.table().insert({
                "tenant_id": tenant_id,
                "name": name,
                "segment_id": segment_id,
                "message": message,
                "audience_size": audience_size,
                "stats_sent": 0,
                "stats_delivered": 0,
                "stats_failed": 0,
                "stats_rejected": 0,
                "launched_at": (launched_at or now).isoformat(),
                "created_at": now.isoformat(),
            }),
            "criar campanha",
            tenant_id=tenant_id,
            segment_id=segment_id,
        )
        return CampaignData.from_db_row(self._first(response))

    async def get(self, tenant_id: str, campaign_id: str) -> Optional[CampaignData]:
        """Busca campanha do tenant por ID."""
        response = self._execute(
            self.table().select("*").eq("tenant_id", tenant_id).eq("id", campaign_id).limit(1),
            "buscar campanha",
            tenant_id=tenant_id,
            campaign_id=campaign_id,
        )
        row = self._first(response)
        return CampaignData.from_db_row(row) if row else None

    async def get_by_id(self, campaign_id: str) -> Optional[CampaignData]:
        """
        Busca campanha sem filtro de tenant.

        Uso interno do reconciliador: o recibo do vendor so traz o log id.
        """
        response = self._execute(
            self.table().select("*").eq("id", campaign_id).limit(1),
            "buscar campanha",
            campaign_id=campaign_id,
        )
        row = self._first(response)
        return CampaignData.from_db_row(row) if row else None

    async def list(self, tenant_id: str) -> List[CampaignData]:
        """Lista campanhas do tenant, mais recentes primeiro."""
        response = self._execute(
            self.table().select("*").eq("tenant_id", tenant_id).order("created_at", desc=True),
            "listar campanhas",
            tenant_id=tenant_id,
        )
        return [CampaignData.from_db_row(row) for row in self._rows(response)]

    async def count_by_segment(self, tenant_id: str, segment_id: str) -> int:
        """Quantas campanhas do tenant referenciam o segmento."""
        response = self._execute(
            self.table()
            .select("id", count="exact")
            .eq("tenant_id", tenant_id)
            .eq("segment_id", segment_id),
            "contar campanhas do segmento",
            tenant_id=tenant_id,
            segment_id=segment_id,
        )
        if response.count is not None:
            return response.count
        return len(self._rows(response))

    async def delete(self, tenant_id: str, campaign_id: str) -> bool:
        """Remove a campanha. Os logs devem ter sido removidos antes."""
        response = self._execute(
            self.table().delete().eq("tenant_id", tenant_id).eq("id", campaign_id),
            "remover campanha",
            tenant_id=tenant_id,
            campaign_id=campaign_id,
        )
        return bool(response.data)

    async def increment_stat(self, campaign_id: str, field: StatField, amount: int = 1) -> None:
        """
        Incremento atomico de um contador (stats_sent/delivered/failed).

        REJECTED incrementa stats_rejected e stats_failed no mesmo UPDATE.

        Executado no banco via campaign_increment_stat, entao envios e
        recibos concorrentes nunca perdem incrementos.
        """
        self._execute(
            self.db.rpc("campaign_increment_stat", {
                "p_campaign_id": campaign_id,
                "p_field": field.value,
                "p_amount": amount,
            }),
            "incrementar contador",
            campaign_id=campaign_id,
            field=field.value,
        )
        logger.debug(f"Campanha {campaign_id}: stats_{field.value} += {amount}")

    async def set_stats(
        self, campaign_id: str, sent: int, delivered: int, failed: int, rejected: int = 0
    ) -> None:
        """Sobrescreve os contadores. Usado somente pelo reparo de estatisticas."""
        self._execute(
            self.db.rpc("campaign_set_stats", {
                "p_campaign_id": campaign_id,
                "p_sent": sent,
                "p_delivered": delivered,
                "p_failed": failed,
                "p_rejected": rejected,
            }),
            "reparar contadores",
            campaign_id=campaign_id,
        )
