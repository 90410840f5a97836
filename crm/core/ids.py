"""
Normalizacao de identificadores.

As chaves primarias sao UUID no banco. Um id mal formado vai direto ao
PostgREST e volta como erro 22P02, entao e barrado antes da query.
"""
import uuid
from typing import Any, Optional


def parse_uuid(value: Any) -> Optional[str]:
    """
    Retorna o UUID na forma canonica, ou None se o valor nao e um UUID.

    Exemplo:
        parse_uuid("3F2504E0-4F89-11D3-9A0C-0305E82C3301")
        -> "3f2504e0-4f89-11d3-9a0c-0305e82c3301"
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return str(uuid.UUID(str(value).strip()))
    except ValueError:
        return None
