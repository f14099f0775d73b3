import unittest

import numpy as np
import pandas as pd

from services.feature_importance_service.service import (
    analyze_feature_importance,
    interpret_importance,
    summarize_importance,
)
from services.feature_importance_service.schemas import FeatureImportanceResult
from services.feature_importance_service.util import (
    correlation_importance,
    score_features,
    upper_median,
    variance_importance,
)
from sample_records import OUT_OF_RANGE, defect_rates, make_request, parameters


class ScoringTestCase(unittest.TestCase):
    def test_upper_median_convention(self):
        # 偶数个元素时取上中位数，而不是两个中间值的平均
        self.assertEqual(upper_median(np.array([4.0, 1.0, 3.0, 2.0])), 3.0)
        self.assertEqual(upper_median(np.array([5.0, 1.0, 3.0])), 3.0)
        self.assertEqual(upper_median(np.array([7.0])), 7.0)

    def test_variance_importance_uses_upper_median_split(self):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        y = np.array([1.0, 2.0, 3.0, 4.0])
        # below = {1,2,3} (var 2/3), above = {4} (var 0); total var 1.25
        self.assertAlmostEqual(variance_importance(x, y, float(np.var(y))), 0.6)

    def test_variance_importance_empty_half(self):
        x = np.array([2.0, 2.0, 2.0])
        y = np.array([0.1, 0.2, 0.3])
        self.assertEqual(variance_importance(x, y, float(np.var(y))), 0.0)

    def test_correlation_importance_zero_variance(self):
        self.assertEqual(correlation_importance(np.array([5.0, 5.0, 5.0]), np.array([0.1, 0.2, 0.3])), 0.0)
        self.assertAlmostEqual(correlation_importance(np.array([3.0, 2.0, 1.0]), np.array([0.1, 0.2, 0.3])), 1.0)

    def test_score_features_blends_and_normalizes(self):
        features = pd.DataFrame({"temp": [1.0, 2.0, 3.0, 4.0], "flat": [5.0, 5.0, 5.0, 5.0]})
        target = pd.Series([1.0, 2.0, 3.0, 4.0])

        scores = score_features(features, target)

        # temp 原始得分 0.6 * 1 + 0.4 * 0.6 = 0.84，flat 为 0，归一化后 temp = 1
        self.assertAlmostEqual(scores["temp"], 1.0)
        self.assertEqual(scores["flat"], 0.0)

    def test_score_features_constant_target(self):
        features = pd.DataFrame({"temp": [1.0, 2.0, 3.0]})
        scores = score_features(features, pd.Series([0.1, 0.1, 0.1]))
        self.assertEqual(scores, {"temp": 0.0})


class FeatureImportanceScenarioTestCase(unittest.TestCase):
    def test_two_lots(self):
        rates = defect_rates({"L1": 0.05, "L2": 0.10})
        params = parameters("temp", {"L1": 100.0, "L2": 200.0})

        res = analyze_feature_importance(make_request(), rates, params)

        self.assertEqual(res.total_lots, 2)
        self.assertEqual(len(res.results), 1)
        result = res.results[0]
        self.assertEqual(result.importance, 1.0)
        self.assertEqual(result.absolute_importance, 1.0)
        self.assertEqual(result.sample_size, 2)
        self.assertEqual(result.interpretation, "High importance")

    def test_sparse_type_drops_whole_lots(self):
        lots = {"L1": 0.01, "L2": 0.03, "L3": 0.02, "L4": 0.05, "L5": 0.04}
        params = parameters("temp", {"L1": 10.0, "L2": 30.0, "L3": 25.0, "L4": 50.0, "L5": 35.0})
        params += parameters("rare", {"L1": 1.0})

        res = analyze_feature_importance(make_request(), defect_rates(lots), params)

        # 只有 L1 同时具备两种参数，完整样本只剩 1 行
        self.assertEqual(res.total_lots, 5)
        self.assertEqual(res.results, [])
        self.assertEqual(res.summary,
                         "No feature importance analysis could be performed due to insufficient data.")

    def test_complete_case_uses_only_full_rows(self):
        lots = {"L1": 0.01, "L2": 0.03, "L3": 0.02, "L4": 0.05, "L5": 0.04}
        params = parameters("temp", {"L1": 10.0, "L2": 30.0, "L3": 25.0, "L4": 50.0, "L5": 35.0})
        params += parameters("pressure", {"L1": 1.0, "L2": 1.2, "L3": 0.9})

        res = analyze_feature_importance(make_request(), defect_rates(lots), params)

        self.assertEqual({r.sample_size for r in res.results}, {3})

    def test_no_common_lots(self):
        rates = defect_rates({"L1": 0.05, "L2": 0.10}, model_id="M2")
        params = parameters("temp", {"L1": 100.0, "L2": 200.0}, timestamp=OUT_OF_RANGE)

        res = analyze_feature_importance(make_request(["M1"]), rates, params)

        self.assertEqual(res.total_lots, 0)
        self.assertEqual(res.results, [])

    def test_constant_parameter_scores_zero(self):
        lots = {"L1": 0.01, "L2": 0.02, "L3": 0.03, "L4": 0.04}
        params = parameters("temp", {"L1": 1.0, "L2": 2.0, "L3": 3.0, "L4": 4.0})
        params += parameters("flat", {"L1": 7.0, "L2": 7.0, "L3": 7.0, "L4": 7.0})

        res = analyze_feature_importance(make_request(), defect_rates(lots), params)

        by_type = {r.parameter_type: r for r in res.results}
        self.assertEqual(by_type["flat"].importance, 0.0)
        self.assertEqual(by_type["flat"].interpretation, "Very low importance")
        self.assertEqual(by_type["temp"].absolute_importance, 1.0)
        self.assertEqual(res.results[0].parameter_type, "temp")

    def test_normalized_and_sorted(self):
        rng = np.random.RandomState(3)
        lots = {f"L{i:02d}": float(rng.uniform(0.0, 0.1)) for i in range(40)}
        params = parameters("linked", {lot: rate * 1000 + float(rng.normal(0, 10)) for lot, rate in lots.items()})
        for ptype in ("noise_a", "noise_b", "noise_c"):
            params += parameters(ptype, {lot: float(rng.normal(50, 5)) for lot in lots})

        res = analyze_feature_importance(make_request(), defect_rates(lots), params)

        self.assertEqual(len(res.results), 4)
        self.assertAlmostEqual(sum(r.absolute_importance for r in res.results), 1.0, delta=1e-3)
        ordered = [r.absolute_importance for r in res.results]
        self.assertEqual(ordered, sorted(ordered, reverse=True))
        self.assertEqual(res.results[0].parameter_type, "linked")
        self.assertTrue(res.summary.startswith("Found "))


class ImportanceInterpretationTestCase(unittest.TestCase):
    def test_buckets(self):
        self.assertEqual(interpret_importance(0.3), "High importance")
        self.assertEqual(interpret_importance(-0.2), "Moderate importance")
        self.assertEqual(interpret_importance(0.05), "Low importance")
        self.assertEqual(interpret_importance(0.049), "Very low importance")

    def _result(self, ptype, importance):
        return FeatureImportanceResult(parameter_type=ptype, importance=importance,
                                       absolute_importance=abs(importance), sample_size=8,
                                       interpretation=interpret_importance(importance))

    def test_summary_names_first_result(self):
        results = [self._result("temp", 0.55), self._result("pressure", 0.3), self._result("humidity", 0.15)]
        self.assertEqual(
            summarize_importance(results),
            "Found 3 important features. Most important: temp (importance: 0.550, High importance).",
        )

    def test_summary_without_important_features(self):
        results = [self._result(f"p{i}", 0.1) for i in range(10)]
        self.assertEqual(summarize_importance(results),
                         "Analyzed 10 features. No highly important features found for predicting defect rate.")


if __name__ == "__main__":
    unittest.main()
