"""
Gestao de segmentos.

Valida condicoes antes de persistir e bloqueia a remocao de segmentos
referenciados por campanhas.
"""
import logging
from typing import Any, Dict, List, Optional

from crm.core.exceptions import ConflictError, NotFoundError, ValidationError
from crm.core.ids import parse_uuid
from crm.repositories.campaign import CampaignRepository
from crm.repositories.segment import Segment, SegmentRepository
from crm.services.audience import AudienceResolver, LogicType, normalize_conditions

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Segment name is required", details={"field": "name"})
    return name.strip()


def _owned_id(segment_id: str) -> str:
    """Id mal formado nao existe em nenhum tenant: 404."""
    parsed = parse_uuid(segment_id)
    if not parsed:
        raise NotFoundError("Segment", segment_id)
    return parsed


class SegmentService:
    """Operacoes de segmento, sempre no escopo de um tenant."""

    def __init__(
        self,
        segments: SegmentRepository,
        campaigns: CampaignRepository,
        resolver: AudienceResolver,
    ):
        self.segments = segments
        self.campaigns = campaigns
        self.resolver = resolver

    async def get(self, tenant_id: str, segment_id: str) -> Segment:
        segment = await self.segments.get(tenant_id, _owned_id(segment_id))
        if not segment:
            raise NotFoundError("Segment", segment_id)
        return segment

    async def list(self, tenant_id: str) -> List[Segment]:
        return await self.segments.list(tenant_id)

    async def create(
        self,
        tenant_id: str,
        name: Optional[str],
        conditions: Optional[Dict[str, Any]],
        logic_type: Any = None,
        description: Optional[str] = None,
    ) -> Segment:
        """
        Cria segmento.

        Raises:
            ValidationError: nome vazio, condicoes ou logic type invalidos
        """
        return await self.segments.create(
            tenant_id=tenant_id,
            name=_clean_name(name),
            conditions=normalize_conditions(conditions or {}),
            logic_type=LogicType.parse(logic_type).value,
            description=description,
        )

    async def update(self, tenant_id: str, segment_id: str, changes: Dict[str, Any]) -> Segment:
        """
        Atualiza campos informados (name, description, conditions, logic_type).

        Campanhas ja lancadas nao sao afetadas: o audience_size delas e
        historico.
        """
        parsed_id = _owned_id(segment_id)
        data: Dict[str, Any] = {}
        if "name" in changes:
            data["name"] = _clean_name(changes["name"])
        if "description" in changes:
            data["description"] = changes["description"]
        if "conditions" in changes:
            data["conditions"] = normalize_conditions(changes["conditions"] or {})
        if "logic_type" in changes:
            data["logic_type"] = LogicType.parse(changes["logic_type"]).value

        if not data:
            return await self.get(tenant_id, segment_id)

        segment = await self.segments.update(tenant_id, parsed_id, data)
        if not segment:
            raise NotFoundError("Segment", segment_id)
        return segment

    async def delete(self, tenant_id: str, segment_id: str) -> None:
        """
        Remove segmento sem campanhas.

        Raises:
            NotFoundError: segmento nao existe no tenant
            ConflictError: ha campanhas referenciando o segmento
        """
        segment = await self.get(tenant_id, segment_id)

        blocking = await self.campaigns.count_by_segment(tenant_id, segment.id)
        if blocking > 0:
            raise ConflictError(
                f"Cannot delete segment with {blocking} associated campaigns. "
                f"Delete the campaigns first.",
                details={"campaigns": blocking},
            )

        await self.segments.delete(tenant_id, segment.id)
        logger.info(f"Segmento removido: {segment.id} (tenant={tenant_id})")

    async def preview(self, tenant_id: str, segment_id: str) -> dict:
        """Amostra da audiencia de um segmento salvo."""
        segment = await self.get(tenant_id, segment_id)
        return await self.preview_conditions(tenant_id, segment.conditions, segment.logic_type)

    async def preview_conditions(
        self,
        tenant_id: str,
        conditions: Optional[Dict[str, Any]],
        logic_type: Any = None,
    ) -> dict:
        """Amostra da audiencia de condicoes ainda nao salvas."""
        customers = await self.resolver.preview(tenant_id, conditions, logic_type)
        return {
            "count": len(customers),
            "limit": self.resolver.preview_limit,
            "customers": [c.to_snapshot() for c in customers],
        }
