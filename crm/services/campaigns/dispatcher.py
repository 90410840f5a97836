"""
Despacho de envios de campanha.

Cada lancamento vira um lote supervisionado: uma task por lote, com os
envios limitados por um semaforo global. O lancamento nao espera o lote.
No shutdown os lotes em andamento sao aguardados ate um timeout e depois
cancelados.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from crm.core.tasks import TaskSupervisor
from crm.repositories.campaign import CampaignRepository
from crm.repositories.customer import Customer
from crm.repositories.delivery_log import DeliveryLogRepository
from crm.services.campaigns.types import StatField
from crm.services.vendor.base import SendResult, VendorGateway

logger = logging.getLogger(__name__)


@dataclass
class DeliveryJob:
    """Um envio: log pendente + destinatario + mensagem renderizada."""

    log_id: str
    campaign_id: str
    customer: Customer
    message: str


class DeliveryDispatcher:
    """
    Pool limitado de envios ao vendor.

    Para cada job: chama o gateway uma vez, grava o resultado no log
    (pending -> sent | failed) e incrementa sent ou rejected da campanha
    (rejected tambem soma em failed).
    Erros de um job sao logados e nao afetam os outros.
    """

    def __init__(
        self,
        gateway: VendorGateway,
        delivery_logs: DeliveryLogRepository,
        campaigns: CampaignRepository,
        max_concurrency: int = 20,
        tasks: Optional[TaskSupervisor] = None,
    ):
        self.gateway = gateway
        self.delivery_logs = delivery_logs
        self.campaigns = campaigns
        self.max_concurrency = max_concurrency
        self.tasks = tasks or TaskSupervisor()
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._batches: Set[asyncio.Task] = set()
        self._in_flight = 0
        self._accepting = True

    @property
    def in_flight(self) -> int:
        """Envios em andamento neste momento."""
        return self._in_flight

    @property
    def active_batches(self) -> int:
        return len(self._batches)

    def dispatch(self, campaign_id: str, jobs: Iterable[DeliveryJob]) -> Optional[asyncio.Task]:
        """
        Agenda os envios de uma campanha e retorna sem esperar.

        Returns:
            Task do lote, ou None se nao ha jobs ou o dispatcher parou
        """
        job_list = list(jobs)
        if not job_list:
            return None

        if not self._accepting:
            logger.warning(
                f"Dispatcher encerrado: {len(job_list)} envios da campanha "
                f"{campaign_id} ficam pendentes"
            )
            return None

        task = self.tasks.spawn(
            self._run_batch(campaign_id, job_list),
            kind="dispatch",
            name=f"dispatch_campaign_{campaign_id}",
        )
        self._batches.add(task)
        task.add_done_callback(self._batches.discard)

        logger.info(f"Lote agendado: campanha {campaign_id}, {len(job_list)} envios")
        return task

    async def wait_idle(self) -> None:
        """Aguarda todos os lotes atuais terminarem."""
        while self._batches:
            await asyncio.gather(*list(self._batches), return_exceptions=True)

    async def drain(self, timeout: float) -> bool:
        """
        Para de aceitar lotes e aguarda os atuais.

        Args:
            timeout: Segundos de espera antes de cancelar

        Returns:
            True se todos terminaram, False se algum foi cancelado
        """
        self._accepting = False
        if not self._batches:
            return True

        batches = list(self._batches)
        logger.info(f"Aguardando {len(batches)} lotes de envio (timeout={timeout}s)")
        _, pending = await asyncio.wait(batches, timeout=timeout)
        if not pending:
            return True

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(
            f"{len(pending)} lotes cancelados no shutdown; logs restantes ficam pending"
        )
        return False

    async def _run_batch(self, campaign_id: str, jobs: List[DeliveryJob]) -> dict:
        results = await asyncio.gather(*(self._deliver(job) for job in jobs))

        summary = {
            "accepted": sum(1 for r in results if r is True),
            "rejected": sum(1 for r in results if r is False),
            "errors": sum(1 for r in results if r is None),
        }
        logger.info(
            f"Lote concluido: campanha {campaign_id} - "
            f"{summary['accepted']} aceitos, {summary['rejected']} rejeitados, "
            f"{summary['errors']} erros"
        )
        return summary

    async def _deliver(self, job: DeliveryJob) -> Optional[bool]:
        """
        Executa um job.

        Returns:
            True aceito, False rejeitado, None erro ao gravar resultado
        """
        async with self._semaphore:
            self._in_flight += 1
            try:
                result = await self._send(job)
                await self._record(job, result)
                return result.accepted
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Erro ao registrar envio do log {job.log_id}: {e}",
                    exc_info=True,
                    extra={"campaign_id": job.campaign_id, "log_id": job.log_id},
                )
                return None
            finally:
                self._in_flight -= 1

    async def _send(self, job: DeliveryJob) -> SendResult:
        try:
            return await self.gateway.send(job.customer, job.message, job.log_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Gateway levantou excecao para log {job.log_id}: {e}", exc_info=True)
            return SendResult.reject(f"Unexpected vendor error: {type(e).__name__}")

    async def _record(self, job: DeliveryJob, result: SendResult) -> None:
        if result.accepted:
            if await self.delivery_logs.mark_sent(
                job.log_id, result.vendor_message_id, result.raw_response
            ):
                await self.campaigns.increment_stat(job.campaign_id, StatField.SENT)
            return

        if await self.delivery_logs.mark_send_failed(
            job.log_id, result.error_reason, result.raw_response
        ):
            await self.campaigns.increment_stat(job.campaign_id, StatField.REJECTED)
