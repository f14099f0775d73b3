import logging
from fastapi import APIRouter, Depends, HTTPException
from services.factory import get_service_factory, ServiceFactory
from .schemas import FeatureImportanceRequest, FeatureImportanceResponse
import time

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_factory() -> ServiceFactory:
    return get_service_factory()


@router.post("/analyze", response_model=FeatureImportanceResponse)
def feature_importance_analyze(payload: FeatureImportanceRequest, factory: ServiceFactory = Depends(_get_factory)):
    logger.info("Received /api/feature-importance/analyze request: %s", payload.model_dump(mode="json"))

    try:
        svc = factory.create("feature_importance")
    except KeyError:
        logger.error("Feature importance service not registered; payload=%s", payload.model_dump(mode="json"))
        raise HTTPException(status_code=500, detail="feature_importance service is not registered")

    start_pc = time.perf_counter()
    try:
        res = svc.analyze(payload)
    except (FileNotFoundError, ValueError) as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.warning("feature-importance analyze data error: %s; payload=%s; elapsed_ms=%.2fms",
                       e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.exception("feature-importance analyze RuntimeError: %s; payload=%s; elapsed_ms=%.2fms",
                         e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.exception("feature-importance analyze unexpected error: %s; payload=%s; elapsed_ms=%.2fms",
                         e, payload.model_dump(mode="json"), elapsed_ms)
        raise HTTPException(status_code=500,
                            detail=f"An error occurred while analyzing feature importance: {e}")

    elapsed_ms = (time.perf_counter() - start_pc) * 1000
    logger.info(
        "feature-importance analyze success: models=%s total_lots=%d results=%d elapsed_ms=%.2fms summary=%s",
        payload.model_ids, res.total_lots, len(res.results), elapsed_ms, res.summary
    )

    return res
