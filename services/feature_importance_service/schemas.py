from datetime import datetime
from typing import List
from pydantic import Field

from services.schemas import AnalysisRequest, CamelModel


class FeatureImportanceRequest(AnalysisRequest):
    pass


class FeatureImportanceResult(CamelModel):
    parameter_type: str = Field(..., description="参数类型")
    importance: float = Field(..., description="归一化后的重要度（保留 4 位小数）")
    absolute_importance: float = Field(..., ge=0.0, description="重要度绝对值")
    sample_size: int = Field(..., description="完整样本矩阵的批次数")
    interpretation: str


class FeatureImportanceResponse(CamelModel):
    date_from: datetime
    date_to: datetime
    model_ids: List[str]
    total_lots: int = Field(..., description="共同批次数")
    results: List[FeatureImportanceResult] = Field(default_factory=list)
    summary: str = ""
