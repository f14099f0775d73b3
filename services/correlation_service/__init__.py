from .api import router
from .service import CorrelationService, analyze_correlation

__all__ = ["router", "CorrelationService", "analyze_correlation"]


def register(factory, settings=None, **service_kwargs):

    factory.register("correlation", lambda **kw: CorrelationService(**{**service_kwargs, **kw}))
