from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from services.base import BaseService
from services.records import RecordLoader
from .schemas import DefectRateRow, ParameterRow


class DataService(BaseService):
    """
    原始数据浏览：机型列表、不良率记录、工艺参数记录。
    """
    def __init__(self, loader: Optional[RecordLoader] = None):
        self.loader = loader
        self._ready = False

    async def startup(self) -> None:
        self._ready = True

    async def shutdown(self) -> None:
        self._ready = False

    def info(self) -> Dict[str, Any]:
        return {"name": "DataService", "ready": self._ready}

    def _require_loader(self) -> RecordLoader:
        if self.loader is None:
            raise RuntimeError("record loader is not configured")
        return self.loader

    def list_models(self) -> List[str]:
        records = self._require_loader().load_defect_rates()
        return sorted({r.model_id for r in records})

    def defect_rates(self, model_ids: Optional[Sequence[str]] = None) -> List[DefectRateRow]:
        records = self._require_loader().load_defect_rates()
        if model_ids:
            wanted = set(model_ids)
            records = [r for r in records if r.model_id in wanted]
        return [DefectRateRow(**asdict(r)) for r in records]

    def parameters(self, model_ids: Optional[Sequence[str]] = None) -> List[ParameterRow]:
        """参数表没有机型列，按批次号前缀匹配机型。"""
        records = self._require_loader().load_parameters()
        if model_ids:
            prefixes = tuple(model_ids)
            records = [r for r in records if r.lot_id.startswith(prefixes)]
        return [ParameterRow(**asdict(r)) for r in records]
