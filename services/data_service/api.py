import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from services.factory import get_service_factory, ServiceFactory
from .schemas import DefectRateRow, HealthResponse, ParameterRow
from .service import DataService
import time

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_factory() -> ServiceFactory:
    return get_service_factory()


def _get_data_service(factory: ServiceFactory = Depends(_get_factory)) -> DataService:
    try:
        return factory.create("data")
    except KeyError:
        logger.error("Data service not registered")
        raise HTTPException(status_code=500, detail="data service is not registered")


def _split_ids(model_ids: Optional[str]) -> List[str]:
    if not model_ids:
        return []
    return [m.strip() for m in model_ids.split(",") if m.strip()]


def _run(label: str, func: Callable, *args):
    start_pc = time.perf_counter()
    try:
        res = func(*args)
    except (FileNotFoundError, ValueError) as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.warning("%s data error: %s; elapsed_ms=%.2fms", label, e, elapsed_ms)
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start_pc) * 1000
        logger.exception("%s unexpected error: %s; elapsed_ms=%.2fms", label, e, elapsed_ms)
        raise HTTPException(status_code=500, detail=f"Failed to load {label} data: {e}")

    elapsed_ms = (time.perf_counter() - start_pc) * 1000
    logger.info("%s success: rows=%d elapsed_ms=%.2fms", label, len(res), elapsed_ms)
    return res


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))


@router.get("/models", response_model=List[str])
def list_models(svc: DataService = Depends(_get_data_service)):
    return _run("models", svc.list_models)


@router.get("/defect-rate", response_model=List[DefectRateRow])
def defect_rates(modelIds: Optional[str] = Query(None, description="逗号分隔的机型编号"),
                 svc: DataService = Depends(_get_data_service)):
    return _run("defect-rate", svc.defect_rates, _split_ids(modelIds))


@router.get("/params", response_model=List[ParameterRow])
def parameters(modelIds: Optional[str] = Query(None, description="逗号分隔的机型编号，按批次号前缀过滤"),
               svc: DataService = Depends(_get_data_service)):
    return _run("params", svc.parameters, _split_ids(modelIds))
