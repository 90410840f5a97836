"""
Testes para resolucao do tenant a partir do token do Supabase Auth.
"""
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from crm.core.auth import TenantContext, get_current_tenant


def _credentials(token="valid-token"):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_token_valido_vira_tenant():
    client = MagicMock()
    client.auth.get_user.return_value = MagicMock(user=MagicMock(id="user-123", email="a@b.com"))

    with patch("crm.core.auth.get_supabase_client", return_value=client):
        tenant = await get_current_tenant(_credentials())

    assert tenant == TenantContext(tenant_id="user-123", email="a@b.com")
    client.auth.get_user.assert_called_once_with("valid-token")


@pytest.mark.asyncio
async def test_token_rejeitado_e_401():
    client = MagicMock()
    client.auth.get_user.side_effect = Exception("invalid JWT")

    with patch("crm.core.auth.get_supabase_client", return_value=client):
        with pytest.raises(HTTPException) as exc:
            await get_current_tenant(_credentials("bad"))

    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_resposta_sem_usuario_e_401():
    client = MagicMock()
    client.auth.get_user.return_value = MagicMock(user=None)

    with patch("crm.core.auth.get_supabase_client", return_value=client):
        with pytest.raises(HTTPException) as exc:
            await get_current_tenant(_credentials())

    assert exc.value.status_code == 401
