"""
Resolucao de audiencia de segmentos.

Transforma as condicoes de um segmento em uma lista concreta de clientes
de UM tenant. O filtro final e sempre:

    tenant AND (c1 <logic> c2 <logic> ...)

No PostgREST os filtros de topo ja sao combinados com AND, entao o tenant
vai como eq() de topo e as condicoes OR vao em um unico or_(). Nunca
colocar o tenant dentro do or_().
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from crm.core.exceptions import ValidationError
from crm.repositories.customer import Customer, CustomerRepository
from crm.services.audience.conditions import (
    Condition,
    LogicType,
    parse_conditions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudienceFilter:
    """Filtro composto: tenant + condicoes do segmento."""

    tenant_id: str
    logic_type: LogicType = LogicType.AND
    conditions: List[Condition] = field(default_factory=list)

    def apply(self, query):
        """
        Aplica o filtro em um query builder do PostgREST.

        Args:
            query: Resultado de table(...).select(...)

        Returns:
            Query com tenant e condicoes aplicados
        """
        query = query.eq("tenant_id", self.tenant_id)

        if not self.conditions:
            return query

        if self.logic_type == LogicType.OR and len(self.conditions) > 1:
            # tenant fica fora do grupo: tenant AND (c1 OR c2 ...)
            return query.or_(",".join(c.to_postgrest() for c in self.conditions))

        for condition in self.conditions:
            query = getattr(query, condition.operator.value)(
                condition.field.column, condition.formatted_value
            )
        return query


class AudienceResolver:
    """Resolve a audiencia de um segmento. Somente leitura."""

    def __init__(self, customer_repository: CustomerRepository, preview_limit: int = 100):
        self.customers = customer_repository
        self.preview_limit = preview_limit

    def build_filter(
        self,
        tenant_id: str,
        conditions: Optional[Dict[str, Any]],
        logic_type: Any = LogicType.AND,
    ) -> AudienceFilter:
        """
        Valida as condicoes e monta o filtro do tenant.

        Raises:
            ValidationError: tenant ausente ou condicoes invalidas
        """
        if not tenant_id:
            raise ValidationError("Tenant is required to resolve an audience")

        return AudienceFilter(
            tenant_id=tenant_id,
            logic_type=LogicType.parse(logic_type),
            conditions=parse_conditions(conditions or {}),
        )

    async def resolve(
        self,
        tenant_id: str,
        conditions: Optional[Dict[str, Any]],
        logic_type: Any = LogicType.AND,
        limit: Optional[int] = None,
    ) -> List[Customer]:
        """
        Busca os clientes do tenant que atendem as condicoes.

        Args:
            tenant_id: Dono do segmento
            conditions: Mapa campo -> comparacao
            logic_type: AND | OR
            limit: None no lancamento de campanha (sem limite)

        Returns:
            Lista de Customer do tenant

        Raises:
            ValidationError: condicoes invalidas
            DatabaseError: erro do banco (propagado)
        """
        audience_filter = self.build_filter(tenant_id, conditions, logic_type)
        customers = await self.customers.find_matching(audience_filter, limit=limit)

        logger.info(
            f"Audiencia resolvida: {len(customers)} clientes "
            f"(tenant={tenant_id}, logic={audience_filter.logic_type.value}, "
            f"condicoes={len(audience_filter.conditions)}, limit={limit})"
        )
        return customers

    async def preview(
        self,
        tenant_id: str,
        conditions: Optional[Dict[str, Any]],
        logic_type: Any = LogicType.AND,
    ) -> List[Customer]:
        """Amostra limitada da audiencia, para a tela de segmentos."""
        return await self.resolve(tenant_id, conditions, logic_type, limit=self.preview_limit)
