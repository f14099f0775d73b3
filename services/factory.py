from __future__ import annotations
import inspect
import asyncio
from functools import lru_cache
from typing import Callable, Dict, Optional, Any, List

from .base import BaseService
import logging

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    负责注册 service 构造器、按名称创建/缓存实例，以及统一的启动/关闭。

    用法示例:
        factory = get_service_factory()
        factory.register("correlation", lambda **kw: CorrelationService(loader=loader, **kw))
        svc = factory.create("correlation")                              # 创建/获取实例
        svc = factory.create("correlation", force_new=True, loader=other)  # 覆盖已有实例
    """

    def __init__(self):
        self._registry: Dict[str, Callable[..., BaseService]] = {}
        self._instances: Dict[str, BaseService] = {}

    def register(self, name: str, ctor: Callable[..., BaseService]) -> None:
        if not callable(ctor):
            raise TypeError("ctor must be callable")
        logger.debug("Register service %s -> %s", name, getattr(ctor, "__name__", str(ctor)))
        self._registry[name] = ctor

    def create(self, name: str, *, force_new: bool = False, **kwargs: Any) -> BaseService:
        """
        - name: 注册时使用的 key，未注册时抛 KeyError
        - force_new: 为 True 时重新构造并替换已缓存的实例
        - kwargs: 传给构造器的参数（覆盖注册时注入的同名参数）
        """
        if name not in self._registry:
            raise KeyError(f"service '{name}' is not registered")

        if not force_new and name in self._instances:
            return self._instances[name]

        inst = self._registry[name](**kwargs)
        if not isinstance(inst, BaseService):
            raise TypeError("created object is not an instance of BaseService")

        self._instances[name] = inst
        logger.info("Service '%s' instantiated", name)
        return inst

    def get(self, name: str) -> Optional[BaseService]:
        return self._instances.get(name)

    def list_registered(self) -> List[str]:
        return list(self._registry.keys())

    # ---------------- lifecycle ----------------
    async def startup_all(self) -> None:
        """实例化所有已注册但尚未创建的 service，并并行调用各自的 startup()。"""
        for name in list(self._registry.keys()):
            if name not in self._instances:
                try:
                    self.create(name)
                except Exception:
                    logger.exception("failed to instantiate service %s during startup_all", name)

        coros = []
        for name, inst in self._instances.items():
            try:
                coro = inst.startup()
                if inspect.isawaitable(coro):
                    coros.append(coro)
            except Exception:
                logger.exception("service %s startup() raised synchronously", name)

        if coros:
            await asyncio.gather(*coros, return_exceptions=False)
        logger.info("ServiceFactory: startup_all finished for %s", ", ".join(self._instances.keys()))

    async def shutdown_all(self) -> None:
        """并行调用已创建实例的 shutdown()，实例本身保留。"""
        coros = []
        for name, inst in self._instances.items():
            try:
                coro = inst.shutdown()
                if inspect.isawaitable(coro):
                    coros.append(coro)
            except Exception:
                logger.exception("service %s shutdown() raised synchronously", name)

        if coros:
            await asyncio.gather(*coros, return_exceptions=True)
        logger.info("ServiceFactory: shutdown_all finished for %s", ", ".join(self._instances.keys()))

    def info_all(self) -> Dict[str, Dict[str, Any]]:
        """返回所有已实例化服务的 info() 字典集合"""
        out: Dict[str, Dict[str, Any]] = {}
        for name, inst in self._instances.items():
            try:
                out[name] = inst.info()
            except Exception:
                logger.exception("service %s info() failed", name)
                out[name] = {"error": True}
        return out


@lru_cache()
def get_service_factory() -> ServiceFactory:
    return ServiceFactory()
