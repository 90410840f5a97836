"""
Testes para os gateways do vendor de mensagens.
"""
import json
import random

import httpx
import pytest

from crm.core.exceptions import ConfigurationError
from crm.repositories.customer import Customer
from crm.services.vendor import (
    HttpVendorGateway,
    SimulatedVendorGateway,
    VendorType,
    get_vendor_gateway,
)
from crm.services.vendor.simulated import REJECTION_REASON
from tests.factories import make_settings

CALLBACK = "http://localhost:8000/api/campaigns/delivery-receipt"


@pytest.fixture
def customer():
    return Customer(
        id="cust-1",
        tenant_id="t1",
        first_name="Anil",
        last_name="Kumar",
        email="anil@example.com",
        phone="+15551234567",
    )


def _gateway(handler, timeout=10.0):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpVendorGateway(
        api_url="https://vendor.test/v1/",
        api_key="secret-key",
        callback_url=CALLBACK,
        timeout=timeout,
        client=client,
    )


class TestHttpVendorGateway:

    @pytest.mark.asyncio
    async def test_aceite_retorna_message_id(self, customer):
        captured = {}

        def handler(request: httpx.Request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(202, json={"message_id": "vm-1", "status": "accepted"})

        result = await _gateway(handler).send(customer, "Hi Anil Kumar", "log-1")

        assert result.accepted is True
        assert result.vendor_message_id == "vm-1"
        assert result.error_reason is None
        assert captured["url"] == "https://vendor.test/v1/messages"
        assert captured["auth"] == "Bearer secret-key"
        assert captured["body"] == {
            "to": "+15551234567",
            "body": "Hi Anil Kumar",
            "callback_url": f"{CALLBACK}?logId=log-1",
            "reference_id": "log-1",
        }

    @pytest.mark.asyncio
    async def test_sem_telefone_usa_email(self, customer):
        captured = {}
        customer.phone = None

        def handler(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "vm-2"})

        result = await _gateway(handler).send(customer, "Hi", "log-2")

        assert result.vendor_message_id == "vm-2"
        assert captured["body"]["to"] == "anil@example.com"

    @pytest.mark.asyncio
    async def test_erro_http_vira_rejeicao(self, customer):
        def handler(request):
            return httpx.Response(422, json={"error": "invalid recipient"})

        result = await _gateway(handler).send(customer, "Hi", "log-3")

        assert result.accepted is False
        assert result.vendor_message_id is None
        assert result.error_reason == "HTTP 422: invalid recipient"
        assert result.raw_response == {"error": "invalid recipient"}

    @pytest.mark.asyncio
    async def test_timeout_vira_rejeicao(self, customer):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = await _gateway(handler, timeout=2.0).send(customer, "Hi", "log-4")

        assert result.accepted is False
        assert "timeout" in result.error_reason.lower()

    @pytest.mark.asyncio
    async def test_erro_de_conexao_vira_rejeicao(self, customer):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await _gateway(handler).send(customer, "Hi", "log-5")

        assert result.accepted is False
        assert "connection" in result.error_reason.lower()

    @pytest.mark.asyncio
    async def test_sucesso_sem_message_id_e_rejeicao(self, customer):
        def handler(request):
            return httpx.Response(200, json={"status": "ok"})

        result = await _gateway(handler).send(customer, "Hi", "log-6")

        assert result.accepted is False

    @pytest.mark.asyncio
    async def test_resposta_nao_json(self, customer):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        result = await _gateway(handler).send(customer, "Hi", "log-7")

        assert result.accepted is False
        assert result.error_reason == "HTTP 503: Service Unavailable"


class TestSimulatedVendorGateway:

    @pytest.mark.asyncio
    async def test_aceita_tudo(self, customer):
        gateway = SimulatedVendorGateway(CALLBACK, accept_rate=1.0)

        result = await gateway.send(customer, "Hi", "log-1")

        assert result.accepted is True
        assert result.vendor_message_id.startswith("vendor-msg-")
        assert result.raw_response["request"]["reference_id"] == "log-1"

    @pytest.mark.asyncio
    async def test_rejeita_tudo(self, customer):
        gateway = SimulatedVendorGateway(CALLBACK, accept_rate=0.0)

        result = await gateway.send(customer, "Hi", "log-1")

        assert result.accepted is False
        assert result.error_reason == REJECTION_REASON

    @pytest.mark.asyncio
    async def test_taxa_padrao_de_90_por_cento(self, customer):
        gateway = SimulatedVendorGateway(CALLBACK, rng=random.Random(7))

        results = [await gateway.send(customer, "Hi", f"log-{i}") for i in range(1000)]
        accepted = sum(1 for r in results if r.accepted)

        assert 850 <= accepted <= 950

    def test_callback_com_query_string(self, customer):
        gateway = SimulatedVendorGateway("https://crm.test/receipt?token=abc", accept_rate=1.0)

        payload = gateway.build_payload(customer, "Hi", "log-1")

        assert payload["callback_url"] == "https://crm.test/receipt?token=abc&logId=log-1"

    def test_callback_sem_query_string(self, customer):
        payload = SimulatedVendorGateway(CALLBACK).build_payload(customer, "Hi", "log-1")

        assert payload["callback_url"] == f"{CALLBACK}?logId=log-1"

    def test_taxa_fora_do_intervalo(self):
        with pytest.raises(ValueError):
            SimulatedVendorGateway(CALLBACK, accept_rate=1.5)


class TestGetVendorGateway:

    def test_modo_simulado(self):
        gateway = get_vendor_gateway(make_settings(VENDOR_MODE="simulated"))

        assert gateway.vendor_type == VendorType.SIMULATED
        assert gateway.accept_rate == 0.9

    def test_modo_http(self):
        gateway = get_vendor_gateway(make_settings(
            VENDOR_MODE="http",
            VENDOR_API_KEY="k",
            VENDOR_TIMEOUT_SECONDS=3.0,
        ))

        assert isinstance(gateway, HttpVendorGateway)
        assert gateway.timeout == 3.0

    def test_modo_http_sem_chave(self):
        with pytest.raises(ConfigurationError):
            get_vendor_gateway(make_settings(VENDOR_MODE="http", VENDOR_API_KEY=""))

    def test_modo_desconhecido(self):
        with pytest.raises(ConfigurationError):
            get_vendor_gateway(make_settings(VENDOR_MODE="carrier-pigeon"))
