from fastapi import APIRouter
from sqlalchemy import text

from common.db.scoped import get_ledger_session, get_session
from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
async def health_check():
    # No logging - probes hit this every few seconds
    return {"status": "healthy", "service": "quota-station"}


@router.get("/db")
async def db_check():
    """Connectivity of both stores. The ledger is a separate database."""
    stores = {}
    for name, session_factory in (
        ("platform", get_session),
        ("ledger", get_ledger_session),
    ):
        try:
            async with session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            stores[name] = "connected"
        except Exception as e:
            logger.error(f"{name} database health check failed: {e}")
            stores[name] = "disconnected"

    healthy = all(state == "connected" for state in stores.values())
    return {"status": "healthy" if healthy else "unhealthy", **stores}
