"""
Repository para Segments.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from crm.core.timezone import agora_utc

from .base import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class Segment:
    """
    Entidade Segment.

    Guarda as condicoes, nunca a lista de clientes. A audiencia e
    resolvida de novo a cada preview ou lancamento.
    """

    id: str
    tenant_id: str
    name: str
    conditions: Dict[str, Any] = field(default_factory=dict)
    logic_type: str = "AND"
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Segment":
        """Cria Segment a partir de dict do banco."""
        return cls(
            id=str(data.get("id", "")),
            tenant_id=str(data.get("tenant_id", "")),
            name=data.get("name", ""),
            conditions=data.get("conditions") or {},
            logic_type=data.get("logic_type") or "AND",
            description=data.get("description"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_snapshot(self) -> dict:
        """Resumo do segmento embutido nos detalhes da campanha."""
        return {
            "id": self.id,
            "name": self.name,
            "conditions": self.conditions,
            "logicType": self.logic_type,
        }

    def to_response(self) -> dict:
        return {
            **self.to_snapshot(),
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class SegmentRepository(BaseRepository[Segment]):
    """
    Repository para Segments.

    Toda leitura e escrita e filtrada pelo tenant dono. Segmento de outro
    tenant se comporta como inexistente.
    """

    @property
    def table_name(self) -> str:
        return "segments"

    async def get(self, tenant_id: str, segment_id: str) -> Optional[Segment]:
        """Busca segmento do tenant por ID."""
        response = self._execute(
            self.table().select("*").eq("tenant_id", tenant_id).eq("id", segment_id).limit(1),
            "buscar segmento",
            tenant_id=tenant_id,
            segment_id=segment_id,
        )
        row = self._first(response)
        return Segment.from_dict(row) if row else None

    async def list(self, tenant_id: str) -> List[Segment]:
        """Lista segmentos do tenant, mais recentes primeiro."""
        response = self._execute(
            self.table().select("*").eq("tenant_id", tenant_id).order("created_at", desc=True),
            "listar segmentos",
            tenant_id=tenant_id,
        )
        return [Segment.from_dict(row) for row in self._rows(response)]

    async def create(
        self,
        tenant_id: str,
        name: str,
        conditions: Dict[str, Any],
        logic_type: str,
        description: Optional[str] = None,
    ) -> Segment:
        """Cria segmento. Condicoes ja devem estar validadas."""
        now = agora_utc().isoformat()
        response = self._execute(
            self.table().insert({
                "tenant_id": tenant_id,
                "name": name,
                "description": description,
                "conditions": conditions,
                "logic_type": logic_type,
                "created_at": now,
                "updated_at": now,
            }),
            "criar segmento",
            tenant_id=tenant_id,
        )
        segment = Segment.from_dict(self._first(response) or {})
        logger.info(f"Segmento criado: {segment.id} (tenant={tenant_id})")
        return segment

    async def update(self, tenant_id: str, segment_id: str, data: Dict[str, Any]) -> Optional[Segment]:
        """
        Atualiza campos do segmento.

        Returns:
            Segment atualizado ou None se nao existe no tenant
        """
        payload = {**data, "updated_at": agora_utc().isoformat()}
        response = self._execute(
            self.table().update(payload).eq("tenant_id", tenant_id).eq("id", segment_id),
            "atualizar segmento",
            tenant_id=tenant_id,
            segment_id=segment_id,
        )
        row = self._first(response)
        return Segment.from_dict(row) if row else None

    async def delete(self, tenant_id: str, segment_id: str) -> bool:
        """Remove segmento. Nao verifica campanhas; isso e feito no service."""
        response = self._execute(
            self.table().delete().eq("tenant_id", tenant_id).eq("id", segment_id),
            "remover segmento",
            tenant_id=tenant_id,
            segment_id=segment_id,
        )
        return bool(response.data)
