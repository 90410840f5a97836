"""
Modulo de audiencia.

Estrutura:
- conditions: Parse e validacao das condicoes de segmento
- resolver: Filtro tenant + condicoes e busca dos clientes
"""
from crm.services.audience.conditions import (
    ComparisonOperator,
    Condition,
    LogicType,
    normalize_conditions,
    parse_conditions,
)
from crm.services.audience.resolver import AudienceFilter, AudienceResolver

__all__ = [
    "AudienceFilter",
    "AudienceResolver",
    "ComparisonOperator",
    "Condition",
    "LogicType",
    "normalize_conditions",
    "parse_conditions",
]
