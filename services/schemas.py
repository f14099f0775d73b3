from datetime import datetime, timezone
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """接口层统一使用 camelCase（dateFrom / modelIds ...），同时接受 snake_case 字段名。"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class AnalysisRequest(CamelModel):
    """
    分析请求。model_ids 会去掉首尾空白并去重（保持原顺序），
    响应中回显的 modelIds 是规整后的列表，不是原样回传。
    """
    date_from: datetime = Field(..., description="起始时间（含）")
    date_to: datetime = Field(..., description="结束时间（含），必须晚于 date_from")
    model_ids: List[str] = Field(..., description="机型编号列表，至少一个")

    @field_validator("date_from", "date_to")
    @classmethod
    def _naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("model_ids")
    @classmethod
    def _non_empty_models(cls, v: List[str]) -> List[str]:
        ids = []
        for m in v:
            m = m.strip()
            if m and m not in ids:
                ids.append(m)
        if not ids:
            raise ValueError("At least one model ID must be provided")
        return ids

    @model_validator(mode="after")
    def _check_range(self) -> "AnalysisRequest":
        if self.date_from >= self.date_to:
            raise ValueError("date_from must be earlier than date_to")
        return self
