import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple
import pandas as pd

from services.base import BaseService
from services.lot_join import LotJoin, join_and_filter
from services.records import DefectRateRecord, ParameterRecord, RecordLoader
from .schemas import FeatureImportanceRequest, FeatureImportanceResponse, FeatureImportanceResult
from .util import score_features

logger = logging.getLogger(__name__)

NOTABLE_IMPORTANCE = 0.15


def interpret_importance(importance: float) -> str:
    abs_importance = abs(importance)

    if abs_importance >= 0.3:
        return "High importance"
    elif abs_importance >= 0.15:
        return "Moderate importance"
    elif abs_importance >= 0.05:
        return "Low importance"
    else:
        return "Very low importance"


def summarize_importance(results: Sequence[FeatureImportanceResult]) -> str:
    """results 需已按 absolute_importance 降序排列。"""
    if not results:
        return "No feature importance analysis could be performed due to insufficient data."

    notable = [r for r in results if r.absolute_importance >= NOTABLE_IMPORTANCE]
    if notable:
        top = results[0]
        return (f"Found {len(notable)} important features. "
                f"Most important: {top.parameter_type} "
                f"(importance: {top.absolute_importance:.3f}, {top.interpretation}).")

    return (f"Analyzed {len(results)} features. "
            "No highly important features found for predicting defect rate.")


def complete_case_matrix(joined: LotJoin) -> Tuple[pd.DataFrame, pd.Series]:
    """
    只保留所有参数类型都有有效均值、且有不良率的批次；任一类型缺失即整行丢弃。
    与相关性分析的按类型独立取样不同。
    """
    rates = joined.rates()
    values, present = joined.parameter_matrix()

    complete = rates.notna() & present.all(axis=1) & values.notna().all(axis=1)
    features = values.loc[complete]
    target = rates.loc[complete]

    logger.debug("complete-case matrix: %d of %d common lots kept, %d parameter types",
                 len(features), joined.total_lots, len(joined.parameter_types))
    return features, target


def rank_features(joined: LotJoin) -> List[FeatureImportanceResult]:
    features, target = complete_case_matrix(joined)
    if len(features) < 2 or not joined.parameter_types:
        return []

    scores = score_features(features, target)
    results = [
        FeatureImportanceResult(
            parameter_type=ptype,
            importance=round(scores[ptype], 4),
            absolute_importance=round(abs(scores[ptype]), 4),
            sample_size=len(features),
            interpretation=interpret_importance(scores[ptype]),
        )
        for ptype in joined.parameter_types
        if ptype in scores
    ]
    # sorted 是稳定排序，重要度相同时保持参数类型的原始顺序
    return sorted(results, key=lambda r: r.absolute_importance, reverse=True)


def analyze_feature_importance(
        request: FeatureImportanceRequest,
        defect_rate_records: Sequence[DefectRateRecord],
        parameter_records: Sequence[ParameterRecord]) -> FeatureImportanceResponse:
    joined = join_and_filter(request, defect_rate_records, parameter_records)
    results = rank_features(joined)

    return FeatureImportanceResponse(
        date_from=request.date_from,
        date_to=request.date_to,
        model_ids=list(request.model_ids),
        total_lots=joined.total_lots,
        results=results,
        summary=summarize_importance(results),
    )


class FeatureImportanceService(BaseService):
    """
    FeatureImportanceService: 对每种工艺参数给出与不良率相关的重要度评分（相关性 + 中位数分组方差下降）。
    """
    def __init__(self, loader: Optional[RecordLoader] = None):
        self.loader = loader
        self._ready = False

    async def startup(self) -> None:
        self._ready = True

    async def shutdown(self) -> None:
        self._ready = False

    def info(self) -> Dict[str, Any]:
        return {"name": "FeatureImportanceService", "ready": self._ready}

    def analyze(self, request: FeatureImportanceRequest) -> FeatureImportanceResponse:
        if self.loader is None:
            raise RuntimeError("record loader is not configured")

        defect_rates, parameters = self.loader.load()
        return analyze_feature_importance(request, defect_rates, parameters)
