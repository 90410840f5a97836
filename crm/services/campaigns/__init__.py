"""
Modulo de campanhas.

Estrutura:
- types: Tipos, enums e contadores derivados
- personalization: Renderizacao do token {NAME}
- dispatcher: Envios em background com concorrencia limitada
- receipts: Parse de recibos do vendor
- reconciler: Fila de recibos e atualizacao de contadores
- orchestrator: Lancamento, listagem, detalhes, remocao e reparo

Somente os tipos sao reexportados aqui; os servicos dependem dos
repositories, que por sua vez importam estes tipos.
"""
from crm.services.campaigns.types import (
    CampaignData,
    DeliveryLogData,
    DeliveryStats,
    DeliveryStatus,
    LaunchResult,
    ReceiptUpdate,
    StatField,
)

__all__ = [
    "CampaignData",
    "DeliveryLogData",
    "DeliveryStats",
    "DeliveryStatus",
    "LaunchResult",
    "ReceiptUpdate",
    "StatField",
]
