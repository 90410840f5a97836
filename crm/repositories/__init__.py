"""
Repositories - Camada de acesso a dados.

Cada repository recebe o cliente do banco no construtor, o que permite
usar o fake em memoria nos testes sem patches.
"""
from .base import BaseRepository
from .campaign import CampaignRepository
from .customer import Customer, CustomerRepository
from .delivery_log import DeliveryLogRepository
from .segment import Segment, SegmentRepository

__all__ = [
    "BaseRepository",
    "CampaignRepository",
    "Customer",
    "CustomerRepository",
    "DeliveryLogRepository",
    "Segment",
    "SegmentRepository",
]
