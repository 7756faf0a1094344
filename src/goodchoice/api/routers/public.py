"""Public health route."""

from fastapi import APIRouter, Depends

from goodchoice.api.deps import get_services
from goodchoice.observability.logging import get_logger
from goodchoice.services import Services

router = APIRouter()

logger = get_logger(__name__)


@router.get("/health")
async def health(services: Services = Depends(get_services)) -> dict:
    """Server and database status. Always 200; db reports its own state."""
    try:
        db_ok = await services.store.ping()
    except Exception:
        logger.exception("health check database ping failed")
        db_ok = False
    return {"status": "ok", "db": "connected" if db_ok else "disconnected"}
