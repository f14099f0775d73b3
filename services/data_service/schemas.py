from datetime import datetime

from services.schemas import CamelModel


class DefectRateRow(CamelModel):
    model_id: str
    lot_id: str
    rate: float


class ParameterRow(CamelModel):
    lot_id: str
    timestamp: datetime
    type: str
    value: float


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
