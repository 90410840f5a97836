"""
Endpoints de segmentos.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from crm.api.deps import get_container
from crm.core.auth import TenantContext, get_current_tenant
from crm.services.container import ServiceContainer

router = APIRouter(prefix="/segments", tags=["Segments"])


class SegmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    conditions: Optional[Dict[str, Any]] = None
    logic_type: Optional[str] = Field(None, alias="logicType")


class PreviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conditions: Optional[Dict[str, Any]] = None
    logic_type: Optional[str] = Field(None, alias="logicType")


@router.get("")
async def list_segments(
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    segments = await container.segments.list(tenant.tenant_id)
    return [s.to_response() for s in segments]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_segment(
    dados: SegmentRequest,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    segment = await container.segments.create(
        tenant.tenant_id,
        dados.name,
        dados.conditions,
        dados.logic_type,
        dados.description,
    )
    return segment.to_response()


@router.post("/preview")
async def preview_conditions(
    dados: PreviewRequest,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Amostra da audiencia para condicoes ainda nao salvas."""
    return await container.segments.preview_conditions(
        tenant.tenant_id, dados.conditions, dados.logic_type
    )


@router.get("/{segment_id}")
async def get_segment(
    segment_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    segment = await container.segments.get(tenant.tenant_id, segment_id)
    return segment.to_response()


@router.put("/{segment_id}")
async def update_segment(
    segment_id: str,
    dados: SegmentRequest,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    segment = await container.segments.update(
        tenant.tenant_id, segment_id, dados.model_dump(exclude_unset=True)
    )
    return segment.to_response()


@router.delete("/{segment_id}")
async def delete_segment(
    segment_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Remove segmento. 409 se houver campanhas usando."""
    await container.segments.delete(tenant.tenant_id, segment_id)
    return {"message": "Segment deleted successfully"}


@router.get("/{segment_id}/preview")
async def preview_segment(
    segment_id: str,
    tenant: TenantContext = Depends(get_current_tenant),
    container: ServiceContainer = Depends(get_container),
):
    """Ate PREVIEW_SAMPLE_SIZE clientes do segmento."""
    return await container.segments.preview(tenant.tenant_id, segment_id)
