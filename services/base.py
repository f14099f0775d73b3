from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseService(ABC):
    """所有分析 service 的生命周期接口，由 ServiceFactory 统一 startup/shutdown。"""

    @abstractmethod
    async def startup(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def shutdown(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def info(self) -> Dict[str, Any]:
        raise NotImplementedError
