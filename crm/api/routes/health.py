"""
Rota de health check.

/health: liveness com profundidade da fila de recibos e envios em
andamento.
"""
import logging

from fastapi import APIRouter, Request

from crm.core.timezone import agora_utc

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Sempre 200 se o app esta de pe."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        return {"status": "starting", "timestamp": agora_utc().isoformat()}

    return {
        "status": "healthy",
        "timestamp": agora_utc().isoformat(),
        "service": container.settings.APP_NAME,
        "reconciler": {
            "running": container.reconciler.running,
            "queueSize": container.reconciler.queue_size,
        },
        "dispatcher": {
            "inFlight": container.dispatcher.in_flight,
            "activeBatches": container.dispatcher.active_batches,
        },
        "taskFailures": container.tasks.failure_counts(),
    }
