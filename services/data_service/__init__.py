from .api import router
from .service import DataService

__all__ = ["router", "DataService"]


def register(factory, settings=None, **service_kwargs):

    factory.register("data", lambda **kw: DataService(**{**service_kwargs, **kw}))
