"""
Reconciliacao de recibos de entrega.

Fila FIFO com um unico consumidor. A cada tick um recibo e processado:

1. Carrega o log (inexistente: descarta)
2. Log terminal: ignora (recibo repetido ou atrasado)
3. Log ainda pending: o resultado do envio nao foi gravado ainda, volta
   para o fim da fila (ate max_deferrals vezes)
4. sent -> delivered | failed | bounced (update condicional)
5. Carrega a campanha (inexistente: descarta)
6. Incrementa delivered ou failed

Nenhum erro derruba o loop.
"""
import asyncio
import logging
from enum import Enum
from typing import Optional

from crm.core.tasks import TaskSupervisor
from crm.repositories.campaign import CampaignRepository
from crm.repositories.delivery_log import DeliveryLogRepository
from crm.services.campaigns.types import DeliveryStatus, ReceiptUpdate, StatField

logger = logging.getLogger(__name__)


class ReceiptOutcome(str, Enum):
    """Resultado de um tick."""

    EMPTY = "empty"
    APPLIED = "applied"
    DEFERRED = "deferred"
    IGNORED = "ignored"
    DROPPED = "dropped"


class ReceiptReconciler:
    """
    Servico de reconciliacao.

    Criado no startup e injetado nas rotas. start() inicia o loop
    periodico; stop() encerra.
    """

    def __init__(
        self,
        delivery_logs: DeliveryLogRepository,
        campaigns: CampaignRepository,
        tick_seconds: float = 5.0,
        max_deferrals: int = 3,
        queue: Optional[asyncio.Queue] = None,
        tasks: Optional[TaskSupervisor] = None,
    ):
        self.delivery_logs = delivery_logs
        self.campaigns = campaigns
        self.tick_seconds = tick_seconds
        self.max_deferrals = max_deferrals
        self.tasks = tasks or TaskSupervisor()
        self._queue: asyncio.Queue = queue if queue is not None else asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def queue_size(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def enqueue(self, update: ReceiptUpdate) -> None:
        """Adiciona recibo ao fim da fila. Nao acessa o banco."""
        self._queue.put_nowait(update)
        logger.info(
            f"Recibo enfileirado: log {update.log_id} -> {update.status.value} "
            f"(fila={self.queue_size})"
        )

    async def tick(self) -> ReceiptOutcome:
        """Processa no maximo um recibo."""
        try:
            update = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return ReceiptOutcome.EMPTY

        try:
            return await self._process(update)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Erro ao reconciliar recibo do log {update.log_id}: {e}",
                exc_info=True,
                extra={"log_id": update.log_id, "status": update.status.value},
            )
            return ReceiptOutcome.DROPPED
        finally:
            self._queue.task_done()

    async def _process(self, update: ReceiptUpdate) -> ReceiptOutcome:
        log = await self.delivery_logs.get(update.log_id)
        if not log:
            logger.error(f"Recibo descartado: log {update.log_id} nao encontrado")
            return ReceiptOutcome.DROPPED

        if log.status.is_terminal:
            logger.warning(
                f"Recibo ignorado: log {log.id} ja esta em {log.status.value} "
                f"(recebido {update.status.value})"
            )
            return ReceiptOutcome.IGNORED

        if log.status == DeliveryStatus.PENDING:
            return self._defer(update)

        if not log.status.can_transition_to(update.status):
            logger.warning(
                f"Recibo ignorado: transicao {log.status.value} -> "
                f"{update.status.value} invalida (log {log.id})"
            )
            return ReceiptOutcome.IGNORED

        applied = await self.delivery_logs.apply_receipt(
            log.id,
            update.status,
            vendor_message_id=update.vendor_message_id,
            reason=update.reason,
            vendor_response=update.raw_payload,
        )
        if not applied:
            return ReceiptOutcome.IGNORED

        campaign = await self.campaigns.get_by_id(log.campaign_id)
        if not campaign:
            logger.error(
                f"Recibo aplicado ao log {log.id} mas campanha {log.campaign_id} "
                f"nao encontrada; contador nao incrementado"
            )
            return ReceiptOutcome.DROPPED

        await self.campaigns.increment_stat(campaign.id, StatField.for_receipt(update.status))
        logger.info(f"Recibo aplicado: log {log.id} -> {update.status.value}")
        return ReceiptOutcome.APPLIED

    def _defer(self, update: ReceiptUpdate) -> ReceiptOutcome:
        if update.deferrals >= self.max_deferrals:
            logger.error(
                f"Recibo descartado: log {update.log_id} continua pending apos "
                f"{update.deferrals} adiamentos"
            )
            return ReceiptOutcome.DROPPED

        update.deferrals += 1
        self._queue.put_nowait(update)
        logger.info(
            f"Recibo adiado: log {update.log_id} ainda pending "
            f"(tentativa {update.deferrals}/{self.max_deferrals})"
        )
        return ReceiptOutcome.DEFERRED

    async def _run(self) -> None:
        logger.info(f"Reconciliador iniciado (tick={self.tick_seconds}s)")
        while True:
            await asyncio.sleep(self.tick_seconds)
            await self.tick()

    def start(self) -> None:
        if self.running:
            return
        self._task = self.tasks.spawn(self._run(), kind="receipt_reconciler")

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        if self.queue_size:
            logger.warning(f"Reconciliador parado com {self.queue_size} recibos na fila")
        else:
            logger.info("Reconciliador parado")
