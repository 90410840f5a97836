"""
Supervisao das tasks de background.

Os lotes de envio e o loop do reconciliador rodam desacoplados da
requisicao que os criou. Um TaskSupervisor por container cria essas tasks,
loga a excecao que escapar delas e conta falhas por tipo de task para o
/health. A excecao nunca sobe para o event loop.
"""
import asyncio
import logging
from collections import Counter
from typing import Any, Coroutine, Dict, Optional

logger = logging.getLogger(__name__)


class TaskSupervisor:
    """
    Cria e acompanha tasks de background.

    Uso:
        tasks = TaskSupervisor()
        tasks.spawn(self._run_batch(...), kind="dispatch", name=f"dispatch_{campaign_id}")
        tasks.failure_counts()  # {"dispatch": 1}
    """

    def __init__(self):
        self._failures: Counter = Counter()
        self._last_errors: Dict[str, str] = {}

    def spawn(self, coro: Coroutine, kind: str, name: Optional[str] = None) -> asyncio.Task:
        """
        Agenda a coroutine no loop atual.

        Args:
            coro: Coroutine a executar
            kind: Tipo da task, chave da contagem de falhas (ex: "dispatch")
            name: Nome da asyncio.Task (default: kind)

        Returns:
            Task cujo resultado e None quando a coroutine falhou
        """
        return asyncio.create_task(self._guard(coro, kind), name=name or kind)

    async def _guard(self, coro: Coroutine, kind: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            logger.debug(f"Task cancelada: {kind}")
            raise
        except Exception as e:
            self._failures[kind] += 1
            self._last_errors[kind] = f"{type(e).__name__}: {e}"
            logger.error(
                f"Task de background '{kind}' falhou: {e}",
                exc_info=True,
                extra={
                    "task_kind": kind,
                    "error_type": type(e).__name__,
                    "total_failures": self._failures[kind],
                },
            )
            return None

    def failure_counts(self) -> Dict[str, int]:
        """Falhas por tipo de task desde a criacao do supervisor."""
        return dict(self._failures)

    def last_error(self, kind: str) -> Optional[str]:
        return self._last_errors.get(kind)
