import os
import shutil
import tempfile
import unittest
from fastapi.testclient import TestClient

from connects.csv_client import CSVClient
from services.factory import get_service_factory
from services.records import RecordLoader

from main import app

SERVICES = ("data", "correlation", "feature_importance")

DEFECT_RATE_CSV = """ModelID,LotID,DefectRate
M1,M1-L01,0.01
M1,M1-L02,0.02
M1,M1-L03,0.03
M1,M1-L04,0.04
M2,M2-L01,0.50
"""

PARAMS_CSV = """LotID,DateTime,Type,Value
M1-L01,2024-03-05 08:00:00,temp,10
M1-L02,2024-03-05 08:00:00,temp,20
M1-L03,2024-03-05 08:00:00,temp,30
M1-L04,2024-03-05 08:00:00,temp,40
M1-L01,2024-03-05 09:00:00,pressure,4.0
M1-L02,2024-03-05 09:00:00,pressure,3.0
M1-L03,2024-03-05 09:00:00,pressure,2.0
M1-L04,2024-03-05 09:00:00,pressure,1.5
M2-L01,2024-03-05 08:00:00,temp,99
"""


def _payload(model_ids, date_from="2024-03-01T00:00:00", date_to="2024-03-31T23:59:59"):
    return {"dateFrom": date_from, "dateTo": date_to, "modelIds": model_ids}


class APITestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        cls.client.__enter__()

        cls.tmpdir = tempfile.mkdtemp()
        with open(os.path.join(cls.tmpdir, "defect_rate.csv"), "w", encoding="utf-8") as f:
            f.write(DEFECT_RATE_CSV)
        with open(os.path.join(cls.tmpdir, "params.csv"), "w", encoding="utf-8") as f:
            f.write(PARAMS_CSV)
        cls._use_data_dir(cls.tmpdir)

    @classmethod
    def tearDownClass(cls):
        cls.client.__exit__(None, None, None)
        shutil.rmtree(cls.tmpdir, ignore_errors=True)

    @staticmethod
    def _use_data_dir(data_dir):
        factory = get_service_factory()
        for name in SERVICES:
            loader = RecordLoader(CSVClient(data_dir), "defect_rate.csv", "params.csv")
            factory.create(name, force_new=True, loader=loader)

    def test_index(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertIn("POST /api/correlation/analyze", body["endpoints"])
        self.assertEqual(set(body["services"]), set(SERVICES))

    def test_health(self):
        r = self.client.get("/api/data/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "healthy")

    def test_models(self):
        r = self.client.get("/api/data/models")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), ["M1", "M2"])

    def test_defect_rate_filtered_by_model(self):
        r = self.client.get("/api/data/defect-rate", params={"modelIds": "M2"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), [{"modelId": "M2", "lotId": "M2-L01", "rate": 0.5}])

        r = self.client.get("/api/data/defect-rate")
        self.assertEqual(len(r.json()), 5)

    def test_params_filtered_by_lot_prefix(self):
        r = self.client.get("/api/data/params", params={"modelIds": "M2"})
        self.assertEqual(r.status_code, 200)
        rows = r.json()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["lotId"], "M2-L01")
        self.assertEqual(rows[0]["value"], 99.0)

    def test_correlation_analyze(self):
        r = self.client.post("/api/correlation/analyze", json=_payload(["M1"]))
        self.assertEqual(r.status_code, 200)
        body = r.json()

        self.assertEqual(body["totalLots"], 4)
        self.assertEqual(body["modelIds"], ["M1"])
        self.assertEqual([res["parameterType"] for res in body["results"]], ["temp", "pressure"])

        temp = body["results"][0]
        self.assertEqual(set(temp), {"parameterType", "correlationCoefficient", "pValue", "sampleSize",
                                     "interpretation"})
        self.assertEqual(temp["correlationCoefficient"], 1.0)
        self.assertEqual(temp["sampleSize"], 4)
        self.assertEqual(temp["interpretation"], "Very strong positive correlation")
        self.assertLess(body["results"][1]["correlationCoefficient"], -0.9)
        self.assertTrue(body["summary"].startswith("Found 2 significant correlations."))

    def test_feature_importance_analyze(self):
        r = self.client.post("/api/feature-importance/analyze", json=_payload(["M1"]))
        self.assertEqual(r.status_code, 200)
        body = r.json()

        self.assertEqual(body["totalLots"], 4)
        self.assertEqual(len(body["results"]), 2)
        first = body["results"][0]
        self.assertEqual(set(first), {"parameterType", "importance", "absoluteImportance", "sampleSize",
                                      "interpretation"})
        ordered = [res["absoluteImportance"] for res in body["results"]]
        self.assertEqual(ordered, sorted(ordered, reverse=True))
        self.assertAlmostEqual(sum(ordered), 1.0, delta=1e-3)

    def test_snake_case_payload_is_accepted(self):
        payload = {"date_from": "2024-03-01T00:00:00", "date_to": "2024-03-31T23:59:59", "model_ids": ["M1"]}
        r = self.client.post("/api/correlation/analyze", json=payload)
        self.assertEqual(r.status_code, 200)

    def test_unknown_model_returns_empty_result(self):
        r = self.client.post("/api/correlation/analyze", json=_payload(["M9"]))
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["totalLots"], 0)
        self.assertEqual(body["results"], [])
        self.assertEqual(body["summary"], "No correlation analysis could be performed due to insufficient data.")

        r = self.client.post("/api/feature-importance/analyze", json=_payload(["M9"]))
        self.assertEqual(r.json()["summary"],
                         "No feature importance analysis could be performed due to insufficient data.")

    def test_invalid_requests(self):
        for path in ("/api/correlation/analyze", "/api/feature-importance/analyze"):
            r = self.client.post(path, json=_payload([]))
            self.assertEqual(r.status_code, 422, path)

            r = self.client.post(path, json=_payload(["M1"], date_from="2024-04-01T00:00:00"))
            self.assertEqual(r.status_code, 422, path)

    def test_missing_data_file(self):
        empty_dir = tempfile.mkdtemp()
        try:
            self._use_data_dir(empty_dir)
            r = self.client.post("/api/correlation/analyze", json=_payload(["M1"]))
            self.assertEqual(r.status_code, 404)
            self.assertIn("Data file not found", r.json()["detail"])

            r = self.client.get("/api/data/models")
            self.assertEqual(r.status_code, 404)
        finally:
            self._use_data_dir(self.tmpdir)
            shutil.rmtree(empty_dir, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
