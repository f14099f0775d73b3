from .api import router
from .service import FeatureImportanceService, analyze_feature_importance

__all__ = ["router", "FeatureImportanceService", "analyze_feature_importance"]


def register(factory, settings=None, **service_kwargs):

    factory.register("feature_importance", lambda **kw: FeatureImportanceService(**{**service_kwargs, **kw}))
