"""
Tenant context authentication.

The tenant is the authenticated user: every customer, segment and campaign
row carries the owner's user id in ``tenant_id``. Tokens are issued and
validated by Supabase Auth; this module only resolves them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from crm.services.supabase import get_supabase_client

logger = logging.getLogger(__name__)

security = HTTPBearer()


@dataclass(frozen=True)
class TenantContext:
    """Identity of the caller, used to scope every query."""
    tenant_id: str
    email: Optional[str] = None


async def get_current_tenant(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TenantContext:
    """
    Validate the Supabase JWT and return the caller's tenant.

    Raises:
        HTTPException: 401 if the token is invalid or expired.
    """
    token = credentials.credentials

    try:
        user_response = get_supabase_client().auth.get_user(token)
    except Exception as e:
        logger.warning(f"Token rejeitado pelo Supabase Auth: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    if not user_response or not user_response.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    auth_user = user_response.user
    return TenantContext(tenant_id=str(auth_user.id), email=auth_user.email)
