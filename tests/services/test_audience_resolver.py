"""
Testes para AudienceResolver.

O ponto central: o filtro e sempre tenant AND (condicoes), inclusive
com logica OR.
"""
from unittest.mock import MagicMock

import pytest

from crm.core.exceptions import DatabaseError, ValidationError
from crm.repositories.customer import CustomerRepository
from crm.services.audience import AudienceFilter, AudienceResolver, LogicType, parse_conditions
from tests.factories import TENANT_A, TENANT_B, make_customer
from tests.fakes import FakeSupabase


@pytest.fixture
def populated_db():
    return FakeSupabase({
        "customers": [
            make_customer(TENANT_A, "Anil", "Kumar", total_spend=15000, visits=2, customer_id="a-rich"),
            make_customer(TENANT_A, "Bea", "Lima", total_spend=500, visits=12, customer_id="a-loyal"),
            make_customer(TENANT_A, "Caio", None, total_spend=100, visits=1, customer_id="a-none"),
            make_customer(TENANT_B, "Dora", "Ng", total_spend=90000, visits=50, customer_id="b-rich"),
            make_customer(TENANT_B, "Eli", None, total_spend=10, visits=20, customer_id="b-loyal"),
        ]
    })


def _resolver(db, page_size=1000):
    return AudienceResolver(CustomerRepository(db, page_size=page_size), preview_limit=100)


class TestAudienceFilter:
    """Ordem das chamadas no query builder."""

    def test_or_mantem_tenant_fora_do_grupo(self):
        query = MagicMock()
        query.eq.return_value = query
        query.or_.return_value = query
        audience_filter = AudienceFilter(
            tenant_id=TENANT_A,
            logic_type=LogicType.OR,
            conditions=parse_conditions({"totalSpend": {"gt": 10000}, "visits": {"gte": 10}}),
        )

        audience_filter.apply(query)

        query.eq.assert_called_once_with("tenant_id", TENANT_A)
        query.or_.assert_called_once_with("total_spend.gt.10000,visits.gte.10")

    def test_and_encadeia_filtros(self):
        query = MagicMock()
        query.eq.return_value = query
        query.gt.return_value = query
        query.lt.return_value = query
        audience_filter = AudienceFilter(
            tenant_id=TENANT_A,
            conditions=parse_conditions({"totalSpend": {"gt": 10}, "visits": {"lt": 5}}),
        )

        audience_filter.apply(query)

        query.eq.assert_called_once_with("tenant_id", TENANT_A)
        query.gt.assert_called_once_with("total_spend", "10")
        query.lt.assert_called_once_with("visits", "5")
        query.or_.assert_not_called()

    def test_or_com_uma_condicao_nao_usa_grupo(self):
        query = MagicMock()
        query.eq.return_value = query
        query.gt.return_value = query
        audience_filter = AudienceFilter(
            tenant_id=TENANT_A,
            logic_type=LogicType.OR,
            conditions=parse_conditions({"visits": {"gt": 3}}),
        )

        audience_filter.apply(query)

        query.or_.assert_not_called()
        query.gt.assert_called_once_with("visits", "3")


class TestResolve:

    @pytest.mark.asyncio
    async def test_or_nao_vaza_clientes_de_outro_tenant(self, populated_db):
        """Clientes do tenant B que atendem as condicoes nao aparecem para A."""
        customers = await _resolver(populated_db).resolve(
            TENANT_A,
            {"totalSpend": {"$gt": 10000}, "visits": {"$gte": 10}},
            "OR",
        )

        assert {c.id for c in customers} == {"a-rich", "a-loyal"}
        assert all(c.tenant_id == TENANT_A for c in customers)

    @pytest.mark.asyncio
    async def test_and_exige_todas_as_condicoes(self, populated_db):
        customers = await _resolver(populated_db).resolve(
            TENANT_A,
            {"totalSpend": {"gt": 400}, "visits": {"gt": 10}},
            "AND",
        )

        assert [c.id for c in customers] == ["a-loyal"]

    @pytest.mark.asyncio
    async def test_sem_condicoes_retorna_todo_o_tenant(self, populated_db):
        customers = await _resolver(populated_db).resolve(TENANT_B, {}, None)

        assert {c.id for c in customers} == {"b-rich", "b-loyal"}

    @pytest.mark.asyncio
    async def test_filtro_por_data(self):
        db = FakeSupabase({"customers": [
            make_customer(TENANT_A, "Old", last_active_date="2023-06-01T00:00:00+00:00", customer_id="old"),
            make_customer(TENANT_A, "New", last_active_date="2024-06-01T00:00:00+00:00", customer_id="new"),
        ]})

        customers = await _resolver(db).resolve(
            TENANT_A, {"lastActiveDate": {"lt": "2024-01-01"}}, "AND"
        )

        assert [c.id for c in customers] == ["old"]

    @pytest.mark.asyncio
    async def test_lancamento_pagina_ate_acabar(self):
        rows = [make_customer(TENANT_A, f"C{i}", customer_id=f"c-{i:03d}") for i in range(25)]
        db = FakeSupabase({"customers": rows})

        customers = await _resolver(db, page_size=10).resolve(TENANT_A, {}, "AND", limit=None)

        assert len(customers) == 25
        ranges = [c for q in db.queries for c in q.calls if c[0] == "range"]
        assert ranges == [("range", 0, 9), ("range", 10, 19), ("range", 20, 29)]

    @pytest.mark.asyncio
    async def test_preview_limita_em_100(self):
        rows = [make_customer(TENANT_A, f"C{i}", customer_id=f"c-{i:03d}") for i in range(130)]
        db = FakeSupabase({"customers": rows})

        customers = await _resolver(db).preview(TENANT_A, {}, "AND")

        assert len(customers) == 100

    @pytest.mark.asyncio
    async def test_tenant_obrigatorio(self, populated_db):
        with pytest.raises(ValidationError):
            await _resolver(populated_db).resolve("", {}, "AND")

    @pytest.mark.asyncio
    async def test_erro_do_banco_propaga(self, populated_db):
        populated_db.fail_on("customers", "select")

        with pytest.raises(DatabaseError) as exc_info:
            await _resolver(populated_db).resolve(TENANT_A, {}, "AND")

        assert exc_info.value.details["table"] == "customers"
