import logging
from fastapi import APIRouter, Depends, HTTPException
from services.factory import get_service_factory, ServiceFactory
from .schemas import CorrelationRequest, CorrelationResponse
import time

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_factory() -> ServiceFactory:
    return get_service_factory()


@router.post("/analyze", response_model=CorrelationResponse)
def correlation_analyze(payload: CorrelationRequest, factory: ServiceFactory = Depends(_get_factory)):
    logger.info("Received /api/correlation/analyze request: %s", payload.model_dump(mode="json"))

    try:
        svc = factory.create("correlation")
    except KeyError:
        logger.error("Correlation service not registered; payload=%s", payload.model_dump(mode="json"))
        raise HTTPException(status_code=500, detail="correlation service is not registered")

    start_pc = time.perf_counter()
    try:
        res = svc.analyze(payload)
    except (FileNotFoundError, ValueError) as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.warning("correlation analyze data error: %s; payload=%s; elapsed_ms=%.2fms",
                       e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.exception("correlation analyze RuntimeError: %s; payload=%s; elapsed_ms=%.2fms",
                         e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.exception("correlation analyze unexpected error: %s; payload=%s; elapsed_ms=%.2fms",
                         e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=500, detail=f"An error occurred while analyzing correlation: {e}")

    elapsed_ms = (time.perf_counter() - start_pc) * 1000
    logger.info(
        "correlation analyze success: models=%s total_lots=%d results=%d elapsed_ms=%.2fms summary=%s",
        payload.model_ids, res.total_lots, len(res.results), elapsed_ms, res.summary
    )

    return res
