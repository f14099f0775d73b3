import logging
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
import pandas as pd

from connects.csv_client import CSVClient
from connects.db_client import DBClient

logger = logging.getLogger(__name__)

# 字段 -> 允许的表头写法（两种大小写风格）
DEFECT_RATE_ALIASES: Dict[str, Tuple[str, str]] = {
    "model_id": ("ModelID", "model_id"),
    "lot_id": ("LotID", "lot_id"),
    "rate": ("DefectRate", "defect_rate"),
}

PARAMETER_ALIASES: Dict[str, Tuple[str, str]] = {
    "lot_id": ("LotID", "lot_id"),
    "timestamp": ("DateTime", "datetime"),
    "type": ("Type", "type"),
    "value": ("Value", "value"),
}


@dataclass(frozen=True)
class DefectRateRecord:
    model_id: str
    lot_id: str
    rate: float


@dataclass(frozen=True)
class ParameterRecord:
    lot_id: str
    timestamp: datetime
    type: str
    value: float


def record_columns(record_cls) -> List[str]:
    return [f.name for f in fields(record_cls)]


def resolve_columns(df: pd.DataFrame, aliases: Dict[str, Sequence[str]], source: str) -> pd.DataFrame:
    """每个字段取第一个存在的表头写法，并重命名为字段名；缺列时抛 ValueError。"""
    rename = {}
    missing = []
    for field_name, candidates in aliases.items():
        col = next((c for c in candidates if c in df.columns), None)
        if col is None:
            missing.append("/".join(candidates))
        else:
            rename[col] = field_name
    if missing:
        raise ValueError(f"{source} is missing required column(s): {', '.join(missing)}")
    return df[list(rename)].rename(columns=rename)


def _to_text(s: pd.Series) -> pd.Series:
    return s.fillna("").astype(str).str.strip()


def _to_number(s: pd.Series) -> pd.Series:
    return pd.to_numeric(_to_text(s), errors="coerce").fillna(0.0).astype(float)


def to_naive_utc(values: pd.Series, format: Optional[str] = None) -> pd.Series:
    """
    统一换算为不带时区的 UTC 时间：带时区的值按各自的偏移换算（允许跨夏令时的混合偏移），
    不带时区的值视为 UTC。无法解析的值为 NaT。
    """
    ts = pd.to_datetime(values, errors="coerce", utc=True, format=format)
    return ts.dt.tz_localize(None)


def _to_timestamp(s: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(s):
        return to_naive_utc(s)
    return to_naive_utc(_to_text(s), format="mixed")


def parse_defect_rates(df: pd.DataFrame, source: str = "defect rate data") -> List[DefectRateRecord]:
    df = resolve_columns(df, DEFECT_RATE_ALIASES, source)
    out = pd.DataFrame({
        "model_id": _to_text(df["model_id"]),
        "lot_id": _to_text(df["lot_id"]),
        "rate": _to_number(df["rate"]),
    })
    return [DefectRateRecord(*row) for row in out.itertuples(index=False, name=None)]


def parse_parameters(df: pd.DataFrame, source: str = "parameter data") -> List[ParameterRecord]:
    df = resolve_columns(df, PARAMETER_ALIASES, source)
    out = pd.DataFrame({
        "lot_id": _to_text(df["lot_id"]),
        "timestamp": _to_timestamp(df["timestamp"]),
        "type": _to_text(df["type"]),
        "value": _to_number(df["value"]),
    })

    bad_ts = out["timestamp"].isna()
    if bad_ts.any():
        logger.warning("%s: dropping %d row(s) with unparsable timestamp", source, int(bad_ts.sum()))
        out = out[~bad_ts]

    return [
        ParameterRecord(lot_id, ts.to_pydatetime(), ptype, value)
        for lot_id, ts, ptype, value in out.itertuples(index=False, name=None)
    ]


class RecordLoader:
    """
    从表格数据源（CSVClient / DBClient，均提供 read_table）读取两类记录。
    每次调用都会重新读取数据源，不做缓存。
    """
    def __init__(self, client, defect_rate_source: str, params_source: str):
        self.client = client
        self.defect_rate_source = defect_rate_source
        self.params_source = params_source

    @classmethod
    def from_settings(cls, settings) -> "RecordLoader":
        source = settings.DATA_SOURCE.lower()
        if source == "csv":
            return cls(CSVClient(settings.DATA_DIR), settings.DEFECT_RATE_FILE, settings.PARAMS_FILE)
        if source == "db":
            client = DBClient(url=settings.DATABASE_URL,
                              db_config=None if settings.DATABASE_URL else settings.get_db_params())
            return cls(client, settings.DEFECT_RATE_TABLE, settings.PARAMS_TABLE)
        raise ValueError(f"Unknown DATA_SOURCE '{settings.DATA_SOURCE}', expected 'csv' or 'db'")

    def load_defect_rates(self) -> List[DefectRateRecord]:
        df = self.client.read_table(self.defect_rate_source)
        return parse_defect_rates(df, source=self.defect_rate_source)

    def load_parameters(self) -> List[ParameterRecord]:
        df = self.client.read_table(self.params_source)
        return parse_parameters(df, source=self.params_source)

    def load(self) -> Tuple[List[DefectRateRecord], List[ParameterRecord]]:
        defect_rates = self.load_defect_rates()
        parameters = self.load_parameters()
        logger.info("Loaded %d defect rate records, %d parameter records", len(defect_rates), len(parameters))
        return defect_rates, parameters

    def close(self):
        self.client.close()
