import math
from typing import Dict
import numpy as np
import pandas as pd

from utils.stats_util import is_constant, pearson

CORRELATION_WEIGHT = 0.6
VARIANCE_WEIGHT = 0.4


def upper_median(values: np.ndarray) -> float:
    """
    排序后取下标 n // 2 的元素。n 为偶数时取上中位数，而不是两个中间值的平均。
    """
    ordered = np.sort(np.asarray(values, dtype=float))
    return float(ordered[len(ordered) // 2])


def correlation_importance(feature: np.ndarray, target: np.ndarray) -> float:
    r = pearson(feature, target)
    return 0.0 if math.isnan(r) else abs(r)


def variance_importance(feature: np.ndarray, target: np.ndarray, target_variance: float) -> float:
    """
    按特征中位数把样本分成 <= median / > median 两组，
    返回组内加权方差相对总方差的下降比例（不小于 0）。任一组为空时返回 0。
    """
    feature = np.asarray(feature, dtype=float)
    target = np.asarray(target, dtype=float)
    if target_variance <= 0:
        return 0.0

    below_mask = feature <= upper_median(feature)
    below = target[below_mask]
    above = target[~below_mask]
    if below.size == 0 or above.size == 0:
        return 0.0

    n = target.size
    weighted_variance = (below.size / n) * float(np.var(below)) + (above.size / n) * float(np.var(above))
    return max(0.0, (target_variance - weighted_variance) / target_variance)


def score_features(features: pd.DataFrame, target: pd.Series) -> Dict[str, float]:
    """
    features: 完整样本矩阵（行 = 批次，列 = 参数类型）；target: 对应批次的不良率。
    每列得分 = 0.6 * |r| + 0.4 * 方差下降比例，再按绝对值之和归一化（和为 0 时保留原值）。
    """
    y = target.to_numpy(dtype=float)
    if len(features) < 2 or features.shape[1] == 0:
        return {}

    if is_constant(y):
        return {col: 0.0 for col in features.columns}

    target_variance = float(np.var(y))
    scores: Dict[str, float] = {}
    for col in features.columns:
        x = features[col].to_numpy(dtype=float)
        scores[col] = (CORRELATION_WEIGHT * correlation_importance(x, y)
                       + VARIANCE_WEIGHT * variance_importance(x, y, target_variance))

    total = sum(abs(v) for v in scores.values())
    if total > 0:
        scores = {k: v / total for k, v in scores.items()}
    return scores
