"""
相关系数显著性检验用到的数值函数，均为无状态的纯函数。

Student-t 分布通过正则化不完全 beta 函数计算：P(T > t) = 0.5 * I_x(df/2, 1/2)，x = df / (df + t^2)。
I_x 用修正 Lentz 连分式展开，beta 前置系数用 Lanczos log-gamma 在对数空间计算，df 较大时不会溢出。
"""
import math
from typing import Sequence

import numpy as np

LANCZOS_COEFFICIENTS = (
    76.18009172947146, -86.50532032941677,
    24.01409824083091, -1.231739572450155,
    0.1208650973866179e-2, -0.5395239384953e-5,
)

CF_MAX_ITERATIONS = 100
CF_EPSILON = 1e-10


def log_gamma(x: float) -> float:
    """ln(Gamma(x))，x > 0，6 项 Lanczos 近似。"""
    y = x
    tmp = x + 5.5
    tmp -= (x + 0.5) * math.log(tmp)
    ser = 1.000000000190015
    for c in LANCZOS_COEFFICIENTS:
        y += 1.0
        ser += c / y
    return -tmp + math.log(2.5066282746310005 * ser / x)


def beta_continued_fraction(x: float, a: float, b: float,
                            max_iterations: int = CF_MAX_ITERATIONS,
                            epsilon: float = CF_EPSILON) -> float:
    qab = a + b
    qap = a + 1.0
    qam = a - 1.0
    c = 1.0
    d = 1.0 - qab * x / qap
    if abs(d) < epsilon:
        d = epsilon
    d = 1.0 / d
    h = d

    for m in range(1, max_iterations + 1):
        m2 = 2 * m
        # 偶数步
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < epsilon:
            d = epsilon
        c = 1.0 + aa / c
        if abs(c) < epsilon:
            c = epsilon
        d = 1.0 / d
        h *= d * c

        # 奇数步
        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 + aa * d
        if abs(d) < epsilon:
            d = epsilon
        c = 1.0 + aa / c
        if abs(c) < epsilon:
            c = epsilon
        d = 1.0 / d
        delta = d * c
        h *= delta

        if abs(delta - 1.0) < epsilon:
            break

    return h


def incomplete_beta(x: float, a: float, b: float) -> float:
    """正则化不完全 beta 函数 I_x(a, b)。"""
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0

    bt = math.exp(log_gamma(a + b) - log_gamma(a) - log_gamma(b)
                  + a * math.log(x) + b * math.log(1.0 - x))

    # 按收敛较快的一侧展开
    if x < (a + 1.0) / (a + b + 2.0):
        return bt * beta_continued_fraction(x, a, b) / a
    return 1.0 - bt * beta_continued_fraction(1.0 - x, b, a) / b


def student_t_cdf(t: float, df: float) -> float:
    """自由度为 df 的 Student-t 分布 P(T <= t)；df <= 0 时返回 0.5。"""
    if df <= 0:
        return 0.5
    x = df / (df + t * t)
    upper_tail = 0.5 * incomplete_beta(x, df / 2.0, 0.5)
    return 1.0 - upper_tail if t >= 0 else upper_tail


def correlation_p_value(r: float, n: int) -> float:
    """
    n 对样本上 Pearson 系数 r 的双侧 p 值：
    t = r * sqrt((n - 2) / (1 - r^2))，自由度 n - 2。
    """
    if n <= 2:
        return 1.0
    denom = 1.0 - r * r
    if denom <= 0.0:
        return 0.0
    t = r * math.sqrt((n - 2) / denom)
    p = 2.0 * (1.0 - student_t_cdf(abs(t), n - 2))
    return min(1.0, max(0.0, p))


def is_constant(values: Sequence[float]) -> bool:
    arr = np.asarray(values, dtype=float)
    return arr.size == 0 or bool(np.all(arr == arr[0]))


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson r = cov(x, y) / (std(x) * std(y))。
    样本少于 2 个或任一侧方差为 0 时返回 NaN。
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"pearson: length mismatch {x.shape} vs {y.shape}")
    if x.size < 2 or is_constant(x) or is_constant(y):
        return float("nan")

    dx = x - x.mean()
    dy = y - y.mean()
    denom = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
    if denom == 0.0:
        return float("nan")
    r = float(np.sum(dx * dy)) / denom
    return min(1.0, max(-1.0, r))
