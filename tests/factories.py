"""
Factories de linhas e configuracoes para os testes.
"""
import uuid
from typing import Optional

from crm.core.config import Settings

TENANT_A = "11111111-1111-1111-1111-111111111111"
TENANT_B = "22222222-2222-2222-2222-222222222222"


def make_customer(
    tenant_id: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    total_spend: float = 0,
    visits: int = 0,
    last_active_date: Optional[str] = None,
    customer_id: Optional[str] = None,
) -> dict:
    """Linha da tabela customers."""
    return {
        "id": customer_id or str(uuid.uuid4()),
        "tenant_id": tenant_id,
        "first_name": first_name,
        "last_name": last_name,
        "email": f"{(first_name or 'anon').lower()}@example.com",
        "phone": "+15550000000",
        "total_spend": total_spend,
        "visits": visits,
        "last_active_date": last_active_date,
    }


def make_segment(
    tenant_id: str,
    conditions: Optional[dict] = None,
    logic_type: str = "AND",
    name: str = "Big spenders",
    segment_id: Optional[str] = None,
) -> dict:
    """Linha da tabela segments."""
    return {
        "id": segment_id or str(uuid.uuid4()),
        "tenant_id": tenant_id,
        "name": name,
        "description": None,
        "conditions": conditions or {},
        "logic_type": logic_type,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }


def make_campaign(
    tenant_id: str,
    segment_id: str,
    audience_size: int = 0,
    sent: int = 0,
    delivered: int = 0,
    failed: int = 0,
    rejected: int = 0,
    campaign_id: Optional[str] = None,
    created_at: str = "2024-02-01T00:00:00+00:00",
) -> dict:
    """Linha da tabela campaigns."""
    return {
        "id": campaign_id or str(uuid.uuid4()),
        "tenant_id": tenant_id,
        "segment_id": segment_id,
        "name": "Spring sale",
        "message": "Hi {NAME}!",
        "audience_size": audience_size,
        "stats_sent": sent,
        "stats_delivered": delivered,
        "stats_failed": failed,
        "stats_rejected": rejected,
        "launched_at": created_at,
        "created_at": created_at,
    }


def make_log(
    campaign_id: str,
    customer_id: str,
    status: str = "pending",
    log_id: Optional[str] = None,
    sent_at: Optional[str] = None,
) -> dict:
    """Linha da tabela delivery_logs."""
    return {
        "id": log_id or str(uuid.uuid4()),
        "campaign_id": campaign_id,
        "customer_id": customer_id,
        "message": "Hi there!",
        "status": status,
        "vendor_message_id": None,
        "vendor_response": {},
        "failure_reason": None,
        "sent_at": sent_at,
        "completed_at": None,
        "created_at": "2024-02-01T00:00:00+00:00",
        "updated_at": "2024-02-01T00:00:00+00:00",
    }


def make_settings(**overrides) -> Settings:
    """Settings isolados do .env local."""
    values = {
        "APP_ENV": "dev",
        "VENDOR_MODE": "simulated",
        "VENDOR_WEBHOOK_SECRET": "",
        "RECEIPT_TICK_SECONDS": 3600.0,
        "SHUTDOWN_DRAIN_SECONDS": 5.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
