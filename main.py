from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from services.factory import get_service_factory
from services.records import RecordLoader
from services.correlation_service import register as register_correlation, router as correlation_router
from services.feature_importance_service import register as register_importance, router as importance_router
from services.data_service import register as register_data, router as data_router
from core.config import get_settings
from core.logging import setup_logging
import logging

setup_logging()
settings = get_settings()
factory = get_service_factory()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(data_router, prefix="/api/data", tags=["data"])
app.include_router(correlation_router, prefix="/api/correlation", tags=["correlation"])
app.include_router(importance_router, prefix="/api/feature-importance", tags=["feature-importance"])


@app.on_event("startup")
async def startup():
    app.state.loader = RecordLoader.from_settings(settings)
    service_kwargs = dict(loader=app.state.loader)
    register_data(factory, settings=settings, **service_kwargs)
    register_correlation(factory, settings=settings, **service_kwargs)
    register_importance(factory, settings=settings, **service_kwargs)

    await factory.startup_all()
    logger.info("%s started: env=%s data_source=%s", settings.APP_NAME, settings.APP_ENV, settings.DATA_SOURCE)


@app.on_event("shutdown")
async def shutdown():
    await factory.shutdown_all()
    loader = getattr(app.state, "loader", None)
    if loader is not None:
        loader.close()


@app.get("/")
def index():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "endpoints": [
            "GET /api/data/health",
            "GET /api/data/models",
            "GET /api/data/defect-rate",
            "GET /api/data/params",
            "POST /api/correlation/analyze",
            "POST /api/feature-importance/analyze",
            "GET /docs",
        ],
        "services": factory.info_all(),
    }
