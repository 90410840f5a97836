"""
Container de servicos.

Monta repositories e servicos a partir do cliente do banco e das
configuracoes. Criado no lifespan da aplicacao (ou injetado nos testes)
e guardado em app.state.container.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from crm.core.config import Settings
from crm.core.tasks import TaskSupervisor
from crm.repositories import (
    CampaignRepository,
    CustomerRepository,
    DeliveryLogRepository,
    SegmentRepository,
)
from crm.services.audience import AudienceResolver
from crm.services.campaigns.dispatcher import DeliveryDispatcher
from crm.services.campaigns.orchestrator import CampaignOrchestrator
from crm.services.campaigns.reconciler import ReceiptReconciler
from crm.services.segments import SegmentService
from crm.services.vendor import VendorGateway, get_vendor_gateway

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Servicos compartilhados pela aplicacao."""

    settings: Settings
    tasks: TaskSupervisor
    resolver: AudienceResolver
    gateway: VendorGateway
    dispatcher: DeliveryDispatcher
    reconciler: ReceiptReconciler
    orchestrator: CampaignOrchestrator
    segments: SegmentService

    @classmethod
    def build(
        cls,
        db: Any,
        settings: Settings,
        gateway: Optional[VendorGateway] = None,
    ) -> "ServiceContainer":
        """
        Monta o grafo de dependencias.

        Args:
            db: Cliente Supabase (ou fake em memoria)
            settings: Configuracoes
            gateway: Gateway do vendor (default: conforme VENDOR_MODE)
        """
        customers = CustomerRepository(db, page_size=settings.CUSTOMER_PAGE_SIZE)
        segments = SegmentRepository(db)
        campaigns = CampaignRepository(db)
        delivery_logs = DeliveryLogRepository(
            db,
            insert_chunk=settings.DELIVERY_LOG_INSERT_CHUNK,
            page_size=settings.CUSTOMER_PAGE_SIZE,
        )

        resolver = AudienceResolver(customers, preview_limit=settings.PREVIEW_SAMPLE_SIZE)
        gateway = gateway or get_vendor_gateway(settings)
        tasks = TaskSupervisor()
        dispatcher = DeliveryDispatcher(
            gateway,
            delivery_logs,
            campaigns,
            max_concurrency=settings.DISPATCH_MAX_CONCURRENCY,
            tasks=tasks,
        )
        reconciler = ReceiptReconciler(
            delivery_logs,
            campaigns,
            tick_seconds=settings.RECEIPT_TICK_SECONDS,
            max_deferrals=settings.RECEIPT_MAX_DEFERRALS,
            tasks=tasks,
        )
        orchestrator = CampaignOrchestrator(
            campaigns=campaigns,
            segments=segments,
            customers=customers,
            delivery_logs=delivery_logs,
            resolver=resolver,
            dispatcher=dispatcher,
            reconciler=reconciler,
            default_template=settings.DEFAULT_MESSAGE_TEMPLATE,
        )

        return cls(
            settings=settings,
            tasks=tasks,
            resolver=resolver,
            gateway=gateway,
            dispatcher=dispatcher,
            reconciler=reconciler,
            orchestrator=orchestrator,
            segments=SegmentService(segments, campaigns, resolver),
        )

    async def start(self) -> None:
        self.reconciler.start()
        logger.info(f"Servicos iniciados (vendor={self.gateway.vendor_type.value})")

    async def stop(self) -> None:
        """Para o reconciliador e aguarda os envios em andamento."""
        await self.reconciler.stop()
        drained = await self.dispatcher.drain(self.settings.SHUTDOWN_DRAIN_SECONDS)
        logger.info(f"Servicos encerrados (envios drenados={drained})")
