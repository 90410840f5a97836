"""
Orquestracao de campanhas.

Lancamento:
1. Valida nome e segment id
2. Carrega o segmento do tenant (outro tenant = 404)
3. Resolve a audiencia completa
4. Cria a campanha com audience_size e contadores zerados
5. Cria um log pending por cliente, com a mensagem personalizada
6. Retorna
7. Os envios seguem em background no dispatcher
"""
import logging
from typing import Any, Dict, List, Optional

from crm.core.exceptions import CRMException, NotFoundError, ValidationError
from crm.core.ids import parse_uuid
from crm.core.timezone import agora_utc
from crm.repositories.campaign import CampaignRepository
from crm.repositories.customer import CustomerRepository
from crm.repositories.delivery_log import DeliveryLogRepository
from crm.repositories.segment import SegmentRepository
from crm.services.audience import AudienceResolver
from crm.services.campaigns.dispatcher import DeliveryDispatcher, DeliveryJob
from crm.services.campaigns.personalization import render_message
from crm.services.campaigns.receipts import simulated_receipt
from crm.services.campaigns.reconciler import ReceiptReconciler
from crm.services.campaigns.types import CampaignData, DeliveryLogData, LaunchResult

logger = logging.getLogger(__name__)


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


class CampaignOrchestrator:
    """Operacoes de campanha no escopo de um tenant."""

    def __init__(
        self,
        campaigns: CampaignRepository,
        segments: SegmentRepository,
        customers: CustomerRepository,
        delivery_logs: DeliveryLogRepository,
        resolver: AudienceResolver,
        dispatcher: DeliveryDispatcher,
        reconciler: ReceiptReconciler,
        default_template: str,
    ):
        self.campaigns = campaigns
        self.segments = segments
        self.customers = customers
        self.delivery_logs = delivery_logs
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.reconciler = reconciler
        self.default_template = default_template

    async def launch(
        self,
        tenant_id: str,
        name: Optional[str],
        segment_id: Optional[str],
        message: Optional[str] = None,
    ) -> LaunchResult:
        """
        Lanca uma campanha.

        Retorna assim que campanha e logs estao gravados. sent=0 logo
        apos o lancamento e esperado.

        Raises:
            ValidationError: nome ou segment id invalidos
            NotFoundError: segmento nao existe no tenant
            DatabaseError: falha ao gravar campanha ou logs
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Campaign name is required", details={"field": "name"})
        if not segment_id:
            raise ValidationError("Segment id is required", details={"field": "segmentId"})
        parsed_segment_id = parse_uuid(segment_id)
        if not parsed_segment_id:
            raise ValidationError("Invalid segment id", details={"segmentId": segment_id})
        segment_id = parsed_segment_id

        segment = await self.segments.get(tenant_id, segment_id)
        if not segment:
            raise NotFoundError("Segment", segment_id)

        audience = await self.resolver.resolve(
            tenant_id, segment.conditions, segment.logic_type, limit=None
        )

        template = message if message and message.strip() else self.default_template
        campaign = await self.campaigns.create(
            tenant_id=tenant_id,
            name=name.strip(),
            segment_id=segment.id,
            message=template,
            audience_size=len(audience),
            launched_at=agora_utc(),
        )

        rendered = {c.id: render_message(template, c, self.default_template) for c in audience}
        try:
            logs = await self.delivery_logs.create_many(
                {"campaign_id": campaign.id, "customer_id": c.id, "message": rendered[c.id]}
                for c in audience
            )
        except CRMException:
            logger.error(f"Falha ao criar logs da campanha {campaign.id}; desfazendo lancamento")
            await self.delivery_logs.delete_by_campaign(campaign.id)
            await self.campaigns.delete(tenant_id, campaign.id)
            raise

        by_id = {c.id: c for c in audience}
        self.dispatcher.dispatch(
            campaign.id,
            (
                DeliveryJob(
                    log_id=log.id,
                    campaign_id=campaign.id,
                    customer=by_id[log.customer_id],
                    message=log.message,
                )
                for log in logs
                if log.customer_id in by_id
            ),
        )

        logger.info(
            f"Campanha lancada: {campaign.id} '{campaign.name}' "
            f"(tenant={tenant_id}, segmento={segment.id}, audiencia={len(audience)})"
        )
        return LaunchResult(
            campaign_id=campaign.id,
            name=campaign.name,
            audience_size=campaign.audience_size,
            log_ids=[log.id for log in logs],
        )

    async def list_campaigns(self, tenant_id: str) -> List[dict]:
        """Campanhas do tenant, mais recentes primeiro, com nome do segmento."""
        campaigns = await self.campaigns.list(tenant_id)
        segment_names = {s.id: s.name for s in await self.segments.list(tenant_id)}

        return [
            {
                **self._summary(campaign),
                "segmentName": segment_names.get(campaign.segment_id),
            }
            for campaign in campaigns
        ]

    async def get_details(self, tenant_id: str, campaign_id: str) -> dict:
        """
        Detalhes da campanha: metadados, segmento, contadores e logs.

        Raises:
            NotFoundError: campanha nao existe no tenant
        """
        campaign = await self._get_owned(tenant_id, campaign_id)
        segment = await self.segments.get(tenant_id, campaign.segment_id)
        logs = await self.delivery_logs.list_by_campaign(campaign.id)

        customers = await self.customers.get_many(tenant_id, (log.customer_id for log in logs))
        snapshots = {c.id: c.to_snapshot() for c in customers}

        return {
            **self._summary(campaign),
            "segment": segment.to_snapshot() if segment else None,
            "logs": [self._log_view(log, snapshots.get(log.customer_id)) for log in logs],
        }

    async def delete(self, tenant_id: str, campaign_id: str) -> dict:
        """
        Remove campanha e seus logs (logs primeiro).

        Raises:
            NotFoundError: campanha nao existe no tenant
        """
        campaign = await self._get_owned(tenant_id, campaign_id)

        deleted_logs = await self.delivery_logs.delete_by_campaign(campaign.id)
        await self.campaigns.delete(tenant_id, campaign.id)

        logger.info(f"Campanha removida: {campaign.id} ({deleted_logs} logs)")
        return {"id": campaign.id, "deletedLogs": deleted_logs}

    async def repair_stats(self, tenant_id: str, campaign_id: str) -> dict:
        """
        Recalcula contadores a partir dos logs.

        Unica operacao que pode diminuir um contador.
        """
        campaign = await self._get_owned(tenant_id, campaign_id)
        summary = await self.delivery_logs.summarize(campaign.id)

        await self.campaigns.set_stats(
            campaign.id,
            sent=summary["sent"],
            delivered=summary["delivered"],
            failed=summary["failed"],
            rejected=summary["rejected"],
        )

        previous = campaign.stats
        campaign.stats_sent = summary["sent"]
        campaign.stats_delivered = summary["delivered"]
        campaign.stats_failed = summary["failed"]
        campaign.stats_rejected = summary["rejected"]

        logger.info(
            f"Contadores reparados: campanha {campaign.id} "
            f"{previous.sent}/{previous.delivered}/{previous.failed} -> "
            f"{summary['sent']}/{summary['delivered']}/{summary['failed']}"
        )
        return {
            "id": campaign.id,
            "before": previous.to_dict(),
            "stats": campaign.stats.to_dict(),
        }

    async def simulate_receipt(self, tenant_id: str, log_id: str, success: bool) -> DeliveryLogData:
        """
        Enfileira um recibo sintetico para um log do tenant.

        Raises:
            NotFoundError: log inexistente ou de outro tenant
            ValidationError: log id mal formado ou log ja terminal
        """
        parsed_log_id = parse_uuid(log_id)
        if not parsed_log_id:
            raise ValidationError("Invalid log id", details={"logId": log_id})

        log = await self.delivery_logs.get(parsed_log_id)
        if not log or not await self.campaigns.get(tenant_id, log.campaign_id):
            raise NotFoundError("Delivery log", log_id)
        if log.status.is_terminal:
            raise ValidationError(
                "Delivery log already has a final status",
                details={"logId": log_id, "status": log.status.value},
            )

        self.reconciler.enqueue(simulated_receipt(log.id, success, agora_utc().isoformat()))
        return log

    async def _get_owned(self, tenant_id: str, campaign_id: str) -> CampaignData:
        parsed_id = parse_uuid(campaign_id)
        if not parsed_id:
            raise NotFoundError("Campaign", campaign_id)
        campaign = await self.campaigns.get(tenant_id, parsed_id)
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    @staticmethod
    def _summary(campaign: CampaignData) -> Dict[str, Any]:
        return {
            "id": campaign.id,
            "name": campaign.name,
            "message": campaign.message,
            "segmentId": campaign.segment_id,
            "audienceSize": campaign.audience_size,
            "stats": campaign.stats.to_dict(),
            "launchedAt": _iso(campaign.launched_at),
            "createdAt": _iso(campaign.created_at),
        }

    @staticmethod
    def _log_view(log: DeliveryLogData, customer: Optional[dict]) -> dict:
        return {
            "id": log.id,
            "campaignId": log.campaign_id,
            "customer": customer or {"id": log.customer_id, "name": "Unknown Customer"},
            "message": log.message,
            "status": log.status.value,
            "vendorMessageId": log.vendor_message_id,
            "failureReason": log.failure_reason,
            "timestamp": _iso(log.completed_at or log.sent_at or log.created_at),
            "sentAt": _iso(log.sent_at),
            "completedAt": _iso(log.completed_at),
            "createdAt": _iso(log.created_at),
        }
