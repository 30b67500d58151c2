from time import perf_counter

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from shared.dependencies import get_store
from shared.exceptions import StoreError
from shared.infrastructure.kvstore import IKeyValueStore
from shared.infrastructure.observability import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

_PROBE_KEY = ("HEALTH#", "PROBE")


@router.get("/health", status_code=status.HTTP_200_OK)
async def health(store: IKeyValueStore = Depends(get_store)):
    t0 = perf_counter()
    try:
        await store.get_item(*_PROBE_KEY)
    except StoreError as e:
        logger.warning("Health check failed", error=e.message)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "checks": {"store": "read failed"}},
        )
    dt_ms = int((perf_counter() - t0) * 1000)
    return {"status": "ok", "checks": {"store_read_ms": dt_ms}}
