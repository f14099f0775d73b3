from datetime import datetime
from typing import List
from pydantic import Field

from services.schemas import AnalysisRequest, CamelModel


class CorrelationRequest(AnalysisRequest):
    pass


class CorrelationResult(CamelModel):
    parameter_type: str = Field(..., description="参数类型")
    coefficient: float = Field(..., ge=-1.0, le=1.0, alias="correlationCoefficient",
                               description="Pearson 相关系数（保留 4 位小数）")
    p_value: float = Field(..., ge=0.0, le=1.0, description="双侧 p 值")
    sample_size: int = Field(..., ge=2, description="有效批次数")
    interpretation: str


class CorrelationResponse(CamelModel):
    date_from: datetime
    date_to: datetime
    model_ids: List[str]
    total_lots: int = Field(..., description="共同批次数")
    results: List[CorrelationResult] = Field(default_factory=list)
    summary: str = ""
