"""
Repository para Customers.

Somente leitura: o cadastro de clientes fica fora do pipeline de campanhas.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .base import BaseRepository

logger = logging.getLogger(__name__)

# Limite de ids por filtro in_ (tamanho da URL do PostgREST)
IN_FILTER_CHUNK = 200


@dataclass
class Customer:
    """
    Entidade Customer.

    Pertence a exatamente um tenant.
    """

    id: str
    tenant_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    total_spend: float = 0
    visits: int = 0
    last_active_date: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Nome completo, vazio se nao houver nome cadastrado."""
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> "Customer":
        """Cria Customer a partir de dict do banco."""
        return cls(
            id=str(data.get("id", "")),
            tenant_id=str(data.get("tenant_id", "")),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            email=data.get("email"),
            phone=data.get("phone"),
            total_spend=data.get("total_spend") or 0,
            visits=data.get("visits") or 0,
            last_active_date=data.get("last_active_date"),
        )

    def to_snapshot(self) -> dict:
        """Dados do cliente embutidos nos detalhes da campanha."""
        return {
            "id": self.id,
            "name": self.full_name or "Unnamed Customer",
            "email": self.email,
            "phone": self.phone,
            "totalSpend": self.total_spend,
        }


class CustomerRepository(BaseRepository[Customer]):
    """
    Repository para operacoes de Customer.

    Todo metodo recebe o tenant_id e filtra por ele.

    Uso:
        repo = CustomerRepository(supabase)
        clientes = await repo.find_matching(audience_filter)
    """

    def __init__(self, db_client, page_size: int = 1000):
        super().__init__(db_client)
        self.page_size = page_size

    @property
    def table_name(self) -> str:
        return "customers"

    async def get_many(self, tenant_id: str, customer_ids: Iterable[str]) -> List[Customer]:
        """
        Busca varios clientes do tenant por ID.

        Usado para montar o snapshot dos logs de uma campanha.
        """
        ids = list(dict.fromkeys(customer_ids))
        if not ids:
            return []

        customers = []
        for start in range(0, len(ids), IN_FILTER_CHUNK):
            chunk = ids[start:start + IN_FILTER_CHUNK]
            response = self._execute(
                self.table().select("*").eq("tenant_id", tenant_id).in_("id", chunk),
                "buscar clientes",
                tenant_id=tenant_id,
            )
            customers.extend(Customer.from_dict(row) for row in self._rows(response))
        return customers

    async def find_matching(self, audience_filter, limit: Optional[int] = None) -> List[Customer]:
        """
        Busca clientes que atendem ao filtro de audiencia.

        Args:
            audience_filter: AudienceFilter (aplica tenant + condicoes)
            limit: Maximo de resultados; None = todos, paginando

        Returns:
            Lista de Customer
        """
        if limit is not None:
            query = audience_filter.apply(self.table().select("*")).order("id").limit(limit)
            response = self._execute(query, "resolver audiencia", tenant_id=audience_filter.tenant_id)
            return [Customer.from_dict(row) for row in self._rows(response)]

        customers: List[Customer] = []
        offset = 0
        while True:
            query = (
                audience_filter.apply(self.table().select("*"))
                .order("id")
                .range(offset, offset + self.page_size - 1)
            )
            response = self._execute(query, "resolver audiencia", tenant_id=audience_filter.tenant_id)
            rows = self._rows(response)
            customers.extend(Customer.from_dict(row) for row in rows)

            if len(rows) < self.page_size:
                break
            offset += self.page_size

        logger.debug(
            f"Audiencia paginada: {len(customers)} clientes "
            f"(tenant={audience_filter.tenant_id})"
        )
        return customers
