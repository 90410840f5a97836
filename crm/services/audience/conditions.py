"""
Condicoes de segmento.

Um segmento guarda um mapa campo -> comparacao unica, por exemplo:

    {"totalSpend": {"operator": "gt", "value": 10000}}

O formato legado do rule builder tambem e aceito:

    {"totalSpend": {"$gt": 10000}}
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Union

from crm.core.exceptions import ValidationError
from crm.core.timezone import parse_datetime


class LogicType(str, Enum):
    """Como multiplas condicoes se combinam."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: Any) -> "LogicType":
        if value is None or value == "":
            return cls.AND
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValidationError(
                "Invalid logic type",
                details={"logicType": value, "allowed": [m.value for m in cls]},
            )


class ComparisonOperator(str, Enum):
    """Operadores suportados. O valor e o operador do PostgREST."""

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"


OPERATOR_ALIASES: Dict[str, ComparisonOperator] = {
    "gt": ComparisonOperator.GT,
    "$gt": ComparisonOperator.GT,
    "greaterThan": ComparisonOperator.GT,
    "gte": ComparisonOperator.GTE,
    "$gte": ComparisonOperator.GTE,
    "greaterOrEqual": ComparisonOperator.GTE,
    "greaterThanOrEqual": ComparisonOperator.GTE,
    "lt": ComparisonOperator.LT,
    "$lt": ComparisonOperator.LT,
    "lessThan": ComparisonOperator.LT,
    "lte": ComparisonOperator.LTE,
    "$lte": ComparisonOperator.LTE,
    "lessOrEqual": ComparisonOperator.LTE,
    "lessThanOrEqual": ComparisonOperator.LTE,
    "eq": ComparisonOperator.EQ,
    "$eq": ComparisonOperator.EQ,
    "equals": ComparisonOperator.EQ,
}


class FieldType(str, Enum):
    NUMBER = "number"
    DATE = "date"


@dataclass(frozen=True)
class SegmentField:
    """Campo segmentavel do cliente."""

    name: str
    column: str
    field_type: FieldType


SEGMENT_FIELDS: Dict[str, SegmentField] = {
    "totalSpend": SegmentField("totalSpend", "total_spend", FieldType.NUMBER),
    "visits": SegmentField("visits", "visits", FieldType.NUMBER),
    "lastActiveDate": SegmentField("lastActiveDate", "last_active_date", FieldType.DATE),
}
# Nome antigo do campo no cadastro de clientes
SEGMENT_FIELDS["lastActive"] = SEGMENT_FIELDS["lastActiveDate"]


Operand = Union[int, float, datetime]


@dataclass(frozen=True)
class Condition:
    """Uma comparacao ja validada."""

    field: SegmentField
    operator: ComparisonOperator
    value: Operand

    @property
    def formatted_value(self) -> str:
        """Valor no formato aceito pelo PostgREST."""
        if isinstance(self.value, datetime):
            return self.value.isoformat().replace("+00:00", "Z")
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    def to_postgrest(self) -> str:
        """Condicao no formato de or_(): coluna.operador.valor"""
        return f"{self.field.column}.{self.operator.value}.{self.formatted_value}"

    def to_dict(self) -> dict:
        return {
            "operator": self.operator.value,
            "value": self.formatted_value if isinstance(self.value, datetime) else self.value,
        }


def _parse_operand(field: SegmentField, value: Any) -> Operand:
    """Valida que o operando tem o tipo do campo."""
    if field.field_type == FieldType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(
                f"Field '{field.name}' requires a numeric value",
                details={"field": field.name, "value": value},
            )
        return value

    if isinstance(value, bool) or isinstance(value, (int, float)):
        raise ValidationError(
            f"Field '{field.name}' requires a date value",
            details={"field": field.name, "value": value},
        )
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError):
        raise ValidationError(
            f"Field '{field.name}' requires a date value",
            details={"field": field.name, "value": str(value)},
        )


def _split_comparison(field_name: str, comparison: Any) -> tuple:
    """Extrai (operador, valor) dos dois formatos aceitos."""
    if not isinstance(comparison, dict):
        raise ValidationError(
            f"Condition for '{field_name}' must be an object",
            details={"field": field_name},
        )

    if "operator" in comparison:
        value = comparison.get("value", comparison.get("operand"))
        return comparison["operator"], value

    if len(comparison) != 1:
        raise ValidationError(
            f"Condition for '{field_name}' must have exactly one comparison",
            details={"field": field_name, "operators": list(comparison.keys())},
        )
    return next(iter(comparison.items()))


def parse_conditions(raw: Dict[str, Any]) -> List[Condition]:
    """
    Valida e converte o mapa de condicoes de um segmento.

    Args:
        raw: Mapa campo -> comparacao (vazio = sem condicoes)

    Returns:
        Lista de Condition, na ordem do mapa

    Raises:
        ValidationError: Campo, operador ou operando invalido
    """
    if not raw:
        return []
    if not isinstance(raw, dict):
        raise ValidationError("Segment conditions must be an object")

    conditions = []
    for field_name, comparison in raw.items():
        field = SEGMENT_FIELDS.get(field_name)
        if not field:
            raise ValidationError(
                f"Unknown segment field '{field_name}'",
                details={"field": field_name, "allowed": sorted(SEGMENT_FIELDS)},
            )

        operator_raw, value = _split_comparison(field_name, comparison)
        operator = OPERATOR_ALIASES.get(str(operator_raw))
        if not operator:
            raise ValidationError(
                f"Unknown operator '{operator_raw}'",
                details={"field": field_name, "operator": operator_raw},
            )

        conditions.append(Condition(field, operator, _parse_operand(field, value)))

    return conditions


def normalize_conditions(raw: Dict[str, Any]) -> Dict[str, dict]:
    """Formato canonico para persistir: {campo: {operator, value}}."""
    return {c.field.name: c.to_dict() for c in parse_conditions(raw)}
