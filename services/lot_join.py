import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import pandas as pd

from services.records import DefectRateRecord, ParameterRecord, record_columns, to_naive_utc
from services.schemas import AnalysisRequest

logger = logging.getLogger(__name__)


def records_to_frame(records: Sequence, record_cls) -> pd.DataFrame:
    columns = record_columns(record_cls)
    rows = [tuple(getattr(r, c) for c in columns) for r in records]
    return pd.DataFrame.from_records(rows, columns=columns)


@dataclass
class LotJoin:
    """
    Join & Filter 的结果：按机型过滤后的不良率、按时间过滤后的参数、共同批次与参数类型。
    common_lots 按不良率记录中首次出现的顺序排列，parameter_types 按参数记录中首次出现的顺序排列。
    """
    defect_rates: pd.DataFrame
    parameters: pd.DataFrame
    common_lots: List[str]
    parameter_types: List[str]

    @property
    def total_lots(self) -> int:
        return len(self.common_lots)

    def rates(self) -> pd.Series:
        """每个共同批次的不良率；同一批次有多条记录时取第一条。"""
        first = self.defect_rates.drop_duplicates("lot_id", keep="first").set_index("lot_id")["rate"]
        return first.reindex(self.common_lots).astype(float)

    def parameter_matrix(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        返回 (values, present)，行是 common_lots，列是 parameter_types。
        values: 同一批次同一类型多次测量的平均值；组内有 NaN 时平均值为 NaN。
        present: 该批次是否有该类型的测量记录。
        """
        if not self.common_lots or not self.parameter_types:
            empty = pd.DataFrame(index=pd.Index(self.common_lots, name="lot_id"), columns=self.parameter_types)
            return empty.astype(float), empty.notna()

        params = self.parameters[self.parameters["lot_id"].isin(self.common_lots)]
        params = params.assign(value=params["value"].astype(float), _nan=params["value"].isna())

        agg = params.groupby(["lot_id", "type"], sort=False).agg(
            value=("value", "mean"),
            has_nan=("_nan", "any"),
            readings=("value", "size"),
        )
        means = agg["value"].where(~agg["has_nan"])

        values = means.unstack("type").reindex(index=self.common_lots, columns=self.parameter_types)
        present = agg["readings"].unstack("type").reindex(index=self.common_lots, columns=self.parameter_types).notna()
        return values.astype(float), present


def join_and_filter(
        request: AnalysisRequest,
        defect_rate_records: Sequence[DefectRateRecord],
        parameter_records: Sequence[ParameterRecord]) -> LotJoin:
    rates = records_to_frame(defect_rate_records, DefectRateRecord)
    params = records_to_frame(parameter_records, ParameterRecord)

    rates = rates[rates["model_id"].isin(request.model_ids)].reset_index(drop=True)

    # 记录里可能混有不同偏移或不带时区的时间，统一按 UTC 比较
    ts = to_naive_utc(params["timestamp"])
    params = params[((ts >= request.date_from) & (ts <= request.date_to)).to_numpy()].reset_index(drop=True)

    param_lots = set(params["lot_id"])
    common_lots = [lot for lot in pd.unique(rates["lot_id"]) if lot in param_lots]
    parameter_types = pd.unique(params["type"]).tolist()

    logger.debug(
        "join: defect rates %d -> %d (models=%s), parameters %d -> %d, common lots %d, parameter types %d",
        len(defect_rate_records), len(rates), request.model_ids,
        len(parameter_records), len(params), len(common_lots), len(parameter_types),
    )

    return LotJoin(
        defect_rates=rates,
        parameters=params,
        common_lots=common_lots,
        parameter_types=parameter_types,
    )
