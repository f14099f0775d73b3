import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from services.base import BaseService
from services.lot_join import LotJoin, join_and_filter
from services.records import DefectRateRecord, ParameterRecord, RecordLoader
from utils.stats_util import correlation_p_value, pearson
from .schemas import CorrelationRequest, CorrelationResponse, CorrelationResult

logger = logging.getLogger(__name__)

STRONG_CORRELATION = 0.5


def interpret_correlation(r: float) -> str:
    abs_r = abs(r)
    direction = "positive" if r >= 0 else "negative"

    if abs_r >= 0.9:
        strength = "Very strong"
    elif abs_r >= 0.7:
        strength = "Strong"
    elif abs_r >= 0.5:
        strength = "Moderate"
    elif abs_r >= 0.3:
        strength = "Weak"
    else:
        return "Very weak or no correlation"
    return f"{strength} {direction} correlation"


def summarize_correlation(results: Sequence[CorrelationResult]) -> str:
    if not results:
        return "No correlation analysis could be performed due to insufficient data."

    strong = [r for r in results if abs(r.coefficient) >= STRONG_CORRELATION]
    if strong:
        strongest = max(strong, key=lambda r: abs(r.coefficient))
        return (f"Found {len(strong)} significant correlations. "
                f"Strongest: {strongest.parameter_type} "
                f"({strongest.coefficient:.3f}, {strongest.interpretation}).")

    return (f"Analyzed {len(results)} parameters. "
            "No strong correlations found with defect rate.")


def correlate_parameter_types(
        joined: LotJoin,
        diagnostics: Optional[Dict[str, Dict[str, int]]] = None) -> List[CorrelationResult]:
    """
    每种参数类型独立取样：某批次缺少该类型、缺少不良率或均值为 NaN 时只在该类型中跳过，
    不影响其它类型。有效样本少于 2 的类型不出现在结果中。
    """
    rates = joined.rates()
    has_rate = rates.notna()
    values, present = joined.parameter_matrix()

    results: List[CorrelationResult] = []
    for ptype in joined.parameter_types:
        has_param = present[ptype]
        col = values[ptype]
        valid = has_param & has_rate & col.notna()

        counts = {
            "missing_defect_rate": int((has_param & ~has_rate).sum()),
            "missing_params": int((~has_param).sum()),
            "nan_param_values": int((has_param & has_rate & col.isna()).sum()),
            "valid_samples": int(valid.sum()),
        }
        logger.debug("Parameter %s: total lots=%d, missing defect rate=%d, missing params=%d, "
                     "NaN param values=%d, valid samples=%d",
                     ptype, joined.total_lots, counts["missing_defect_rate"], counts["missing_params"],
                     counts["nan_param_values"], counts["valid_samples"])
        if diagnostics is not None:
            diagnostics[ptype] = counts

        n = counts["valid_samples"]
        if n < 2:
            continue

        r = pearson(rates[valid].to_numpy(), col[valid].to_numpy())
        if math.isnan(r):
            # 任一侧方差为 0
            r = 0.0

        results.append(CorrelationResult(
            parameter_type=ptype,
            coefficient=round(r, 4) + 0.0,  # 避免输出 -0.0
            p_value=correlation_p_value(r, n),
            sample_size=n,
            interpretation=interpret_correlation(r),
        ))

    return results


def analyze_correlation(
        request: CorrelationRequest,
        defect_rate_records: Sequence[DefectRateRecord],
        parameter_records: Sequence[ParameterRecord],
        diagnostics: Optional[Dict[str, Dict[str, int]]] = None) -> CorrelationResponse:
    joined = join_and_filter(request, defect_rate_records, parameter_records)
    results = correlate_parameter_types(joined, diagnostics=diagnostics)

    return CorrelationResponse(
        date_from=request.date_from,
        date_to=request.date_to,
        model_ids=list(request.model_ids),
        total_lots=joined.total_lots,
        results=results,
        summary=summarize_correlation(results),
    )


class CorrelationService(BaseService):
    """
    CorrelationService: 读取不良率/工艺参数记录，计算各参数类型与不良率的 Pearson 相关性。
    注册时注入 RecordLoader，例如：
        factory.register("correlation", lambda **kw: CorrelationService(loader=loader))
    """
    def __init__(self, loader: Optional[RecordLoader] = None):
        self.loader = loader
        self._ready = False

    async def startup(self) -> None:
        self._ready = True

    async def shutdown(self) -> None:
        self._ready = False

    def info(self) -> Dict[str, Any]:
        return {"name": "CorrelationService", "ready": self._ready}

    def analyze(self, request: CorrelationRequest) -> CorrelationResponse:
        if self.loader is None:
            raise RuntimeError("record loader is not configured")

        defect_rates, parameters = self.loader.load()
        return analyze_correlation(request, defect_rates, parameters)
