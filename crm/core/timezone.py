"""
Modulo centralizado para tratamento de datas.

Tudo e armazenado em UTC. Operandos de data vindos de segmentos podem
chegar como string ISO, com ou sem timezone.
"""

from datetime import date, datetime, timezone
from typing import Union

from dateutil import parser as date_parser

TZ_UTC = timezone.utc


def agora_utc() -> datetime:
    """
    Retorna datetime atual em UTC (timezone-aware).

    Returns:
        datetime em UTC com tzinfo
    """
    return datetime.now(TZ_UTC)


def para_utc(dt: datetime) -> datetime:
    """
    Converte datetime para UTC.

    Datetimes naive sao assumidos como UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=TZ_UTC)
    return dt.astimezone(TZ_UTC)


def parse_datetime(value: Union[str, date, datetime]) -> datetime:
    """
    Converte operando de data para datetime UTC.

    Aceita datetime, date ou string em qualquer formato que o dateutil
    entenda ("2024-01-31", "2024-01-31T10:00:00Z", ...).

    Raises:
        ValueError: Se o valor nao representa uma data
    """
    if isinstance(value, datetime):
        return para_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=TZ_UTC)
    if isinstance(value, str) and value.strip():
        try:
            return para_utc(date_parser.isoparse(value.strip()))
        except ValueError:
            return para_utc(date_parser.parse(value.strip()))
    raise ValueError(f"Data invalida: {value!r}")
