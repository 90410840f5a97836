"""
Testes para o parse de condicoes de segmento.
"""
from datetime import datetime, timezone

import pytest

from crm.core.exceptions import ValidationError
from crm.services.audience.conditions import (
    ComparisonOperator,
    LogicType,
    normalize_conditions,
    parse_conditions,
)


class TestLogicType:

    def test_vazio_vira_and(self):
        assert LogicType.parse(None) == LogicType.AND
        assert LogicType.parse("") == LogicType.AND

    def test_aceita_minusculas(self):
        assert LogicType.parse("or") == LogicType.OR

    def test_rejeita_desconhecido(self):
        with pytest.raises(ValidationError) as exc_info:
            LogicType.parse("XOR")

        assert exc_info.value.details["logicType"] == "XOR"


class TestParseConditions:

    def test_condicoes_vazias(self):
        assert parse_conditions({}) == []
        assert parse_conditions(None) == []

    @pytest.mark.parametrize("spelling,expected", [
        ("gt", ComparisonOperator.GT),
        ("$gte", ComparisonOperator.GTE),
        ("lessThan", ComparisonOperator.LT),
        ("lessOrEqual", ComparisonOperator.LTE),
        ("equals", ComparisonOperator.EQ),
    ])
    def test_grafias_de_operador(self, spelling, expected):
        [condition] = parse_conditions({"visits": {"operator": spelling, "value": 3}})

        assert condition.operator == expected
        assert condition.field.column == "visits"

    def test_formato_legado_do_rule_builder(self):
        [condition] = parse_conditions({"totalSpend": {"$gt": 10000}})

        assert condition.operator == ComparisonOperator.GT
        assert condition.to_postgrest() == "total_spend.gt.10000"

    def test_data_vira_utc(self):
        [condition] = parse_conditions(
            {"lastActiveDate": {"operator": "lt", "value": "2024-01-31"}}
        )

        assert condition.value == datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert condition.formatted_value == "2024-01-31T00:00:00Z"

    def test_alias_last_active(self):
        [condition] = parse_conditions({"lastActive": {"$gte": "2024-05-01T10:00:00Z"}})

        assert condition.field.column == "last_active_date"

    def test_float_inteiro_sem_casa_decimal(self):
        [condition] = parse_conditions({"totalSpend": {"gt": 100.0}})

        assert condition.formatted_value == "100"

    def test_campo_desconhecido(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_conditions({"age": {"gt": 30}})

        assert "age" in exc_info.value.message

    def test_operador_desconhecido(self):
        with pytest.raises(ValidationError):
            parse_conditions({"visits": {"$regex": "1"}})

    def test_numero_em_campo_de_data(self):
        with pytest.raises(ValidationError):
            parse_conditions({"lastActiveDate": {"gt": 20240101}})

    def test_texto_em_campo_numerico(self):
        with pytest.raises(ValidationError):
            parse_conditions({"totalSpend": {"gt": "10000"}})

    def test_booleano_em_campo_numerico(self):
        with pytest.raises(ValidationError):
            parse_conditions({"visits": {"eq": True}})

    def test_data_invalida(self):
        with pytest.raises(ValidationError):
            parse_conditions({"lastActiveDate": {"gt": "not a date"}})

    def test_mais_de_uma_comparacao_por_campo(self):
        with pytest.raises(ValidationError):
            parse_conditions({"visits": {"$gt": 1, "$lt": 5}})


class TestNormalizeConditions:

    def test_formato_canonico(self):
        normalized = normalize_conditions({
            "totalSpend": {"$gt": 10000},
            "lastActiveDate": {"operator": "lessThan", "value": "2024-01-31"},
        })

        assert normalized == {
            "totalSpend": {"operator": "gt", "value": 10000},
            "lastActiveDate": {"operator": "lt", "value": "2024-01-31T00:00:00Z"},
        }
