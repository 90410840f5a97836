"""
Endpoints de campanhas.

Lancamento, consulta, remocao, reparo de contadores e ingestao de
recibos do vendor.
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field

from crm.api.deps import get_container
from crm.api.webhook_auth import SIGNATURE_HEADER, verify_vendor_signature
from crm.core.auth import TenantContext, get_current_tenant
from crm.core.exceptions import NotFoundError, ValidationError
from crm.services.campaigns.receipts import parse_receipt
from crm.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaigns", tags=["Campaigns"])


class LaunchCampaignRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    segment_id: Optional[str] = Field(None, alias="segmentId")
    message: Optional[str] = None


class SimulateCallbackRequest(BaseModel):
    success: bool = True


@router.post("/delivery-receipt")
async def delivery_receipt(
    request: Request,
    log_id: Optional[str] = Query(None, alias="logId"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Callback do vendor com o resultado da entrega.

    Apenas valida e enfileira; o reconciliador aplica no proximo tick.
    """
    body = await request.body()
    verify_vendor_signature(body, request.headers.get(SIGNATURE_HEADER, ""), container.settings)

    try:
        payload = json.loads(body or b"null")
    except ValueError:
        raise ValidationError("Receipt body is not valid JSON")

    update = parse_receipt(payload, log_id)
    container.reconciler.enqueue(update)

    return {"message": "Receipt queued", "logId": update.log_id, "status": update.status.value}


@router.post("/simulate-callback/{log_id}")
async def simulate_callback(
    log_id: str,
    dados: Optional[SimulateCallbackRequest] = None,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Enfileira recibo sintetico. Indisponivel em producao."""
    if container.settings.is_production:
        raise NotFoundError("Endpoint")

    success = dados.success if dados else True
    log = await container.orchestrator.simulate_receipt(tenant.tenant_id, log_id, success)
    return {
        "message": "Simulated receipt queued",
        "logId": log.id,
        "status": "delivered" if success else "failed",
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def launch_campaign(
    dados: LaunchCampaignRequest,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Lanca campanha; os envios seguem em background."""
    result = await container.orchestrator.launch(
        tenant.tenant_id, dados.name, dados.segment_id, dados.message
    )
    return {
        "id": result.campaign_id,
        "name": result.name,
        "audienceSize": result.audience_size,
        "message": "Campaign created and messages queued for delivery",
    }


@router.get("")
async def list_campaigns(
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    return await container.orchestrator.list_campaigns(tenant.tenant_id)


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    return await container.orchestrator.get_details(tenant.tenant_id, campaign_id)


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Remove campanha e seus logs."""
    result = await container.orchestrator.delete(tenant.tenant_id, campaign_id)
    return {"message": "Campaign deleted successfully", **result}


@router.post("/{campaign_id}/repair-stats")
async def repair_campaign_stats(
    campaign_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Recalcula os contadores a partir dos logs."""
    return await container.orchestrator.repair_stats(tenant.tenant_id, campaign_id)
