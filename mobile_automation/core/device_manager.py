#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
设备/目标管理

功能：
1. 当前目标平台（android / ios / desktop / aurora）切换
2. 每个平台选中的设备ID
3. 按目标（平台 + 设备ID）缓存后端适配器
4. 列出所有连接的设备

Android / iOS 适配器内置；Desktop / Aurora 没有内置后端，
需要通过 register_adapter 注册，否则调用时抛出 BackendUnavailable。
"""
import asyncio
from typing import Callable, Dict, List, Optional, Tuple

from mobile_automation.config import Config
from mobile_automation.core.backends.base import CapabilityAdapter
from mobile_automation.errors import BackendUnavailable, ValidationError
from mobile_automation.utils.logger import get_logger

logger = get_logger('device_manager')

PLATFORMS = ("android", "ios", "desktop", "aurora")

AdapterFactory = Callable[[Optional[str]], CapabilityAdapter]
DeviceLister = Callable[[], List[Dict[str, str]]]


def _android_adapter(device_id: Optional[str]) -> CapabilityAdapter:
    from mobile_automation.core.backends.android import AndroidAdapter
    return AndroidAdapter(device_id)


def _android_devices() -> List[Dict[str, str]]:
    from mobile_automation.core.backends.android import list_android_devices
    return list_android_devices()


def _ios_adapter(device_id: Optional[str]) -> CapabilityAdapter:
    from mobile_automation.core.backends.ios import IOSAdapter
    return IOSAdapter(device_id)


def _ios_devices() -> List[Dict[str, str]]:
    from mobile_automation.core.backends.ios import list_ios_devices
    return list_ios_devices()


class DeviceManager:
    """
    目标管理器

    用法:
        manager = DeviceManager()
        manager.set_target("ios")
        adapter = manager.get_adapter()
    """

    def __init__(self, platform: Optional[str] = None, device_id: Optional[str] = None):
        """
        初始化设备管理器

        Args:
            platform: 默认目标平台（None 时使用 Config.DEFAULT_PLATFORM）
            device_id: 默认平台的设备ID（None 时使用 Config 中的设置，auto=自动选择）
        """
        self.current_platform = self._check_platform(platform or Config.DEFAULT_PLATFORM)
        self._device_ids: Dict[str, Optional[str]] = {
            self.current_platform: device_id or Config.default_device_id(),
        }
        self._adapters: Dict[str, CapabilityAdapter] = {}
        self._factories: Dict[str, AdapterFactory] = {
            "android": _android_adapter,
            "ios": _ios_adapter,
        }
        self._listers: Dict[str, DeviceLister] = {
            "android": _android_devices,
            "ios": _ios_devices,
        }

    @staticmethod
    def _check_platform(platform: str) -> str:
        if platform not in PLATFORMS:
            raise ValidationError(f"Unknown platform: {platform} (expected one of {', '.join(PLATFORMS)})")
        return platform

    def register_adapter(
        self,
        platform: str,
        factory: AdapterFactory,
        lister: Optional[DeviceLister] = None,
    ):
        """
        注册/替换某个平台的适配器工厂

        Args:
            platform: 平台名
            factory: device_id -> CapabilityAdapter
            lister: 列出该平台设备的函数（可选）
        """
        self._check_platform(platform)
        self._factories[platform] = factory
        if lister is not None:
            self._listers[platform] = lister
        # 已缓存的同平台适配器作废
        for key in [k for k in self._adapters if k.startswith(f"{platform}:")]:
            del self._adapters[key]

    def resolve_platform(self, platform: Optional[str] = None) -> str:
        """参数里的平台优先，否则使用当前目标"""
        if platform is None:
            return self.current_platform
        return self._check_platform(platform)

    def device_id_for(self, platform: Optional[str] = None) -> Optional[str]:
        return self._device_ids.get(self.resolve_platform(platform))

    def target_key(self, platform: Optional[str] = None) -> str:
        """目标标识：平台 + 设备ID（缓存按这个键隔离）"""
        platform = self.resolve_platform(platform)
        return f"{platform}:{self._device_ids.get(platform) or 'default'}"

    def get_adapter(self, platform: Optional[str] = None) -> CapabilityAdapter:
        """
        获取目标的适配器（同一目标复用同一个实例）

        Raises:
            BackendUnavailable: 平台被禁用或没有可用后端
        """
        platform = self.resolve_platform(platform)
        if not Config.is_platform_enabled(platform):
            raise BackendUnavailable(f"{platform} support is disabled (set {platform.upper()}_SUPPORT_ENABLED=true)")

        key = self.target_key(platform)
        adapter = self._adapters.get(key)
        if adapter is None:
            factory = self._factories.get(platform)
            if factory is None:
                raise BackendUnavailable(f"No backend available for platform: {platform}")
            adapter = factory(self._device_ids.get(platform))
            self._adapters[key] = adapter
            logger.debug(f"创建适配器: {key}")
        return adapter

    async def list_devices(self, platform: Optional[str] = None) -> List[Dict[str, str]]:
        """
        列出设备

        Args:
            platform: 只列出该平台（None=全部平台，不可用的平台会被跳过）
        """
        if platform is not None:
            lister = self._listers.get(self._check_platform(platform))
            if lister is None:
                return []
            return await self._list(platform, lister)

        devices: List[Dict[str, str]] = []
        for name, lister in self._listers.items():
            if not Config.is_platform_enabled(name):
                continue
            try:
                devices.extend(await self._list(name, lister))
            except BackendUnavailable as e:
                logger.debug(f"跳过 {name}: {e.message}")
        return devices

    @staticmethod
    async def _list(platform: str, lister: DeviceLister) -> List[Dict[str, str]]:
        devices = await asyncio.to_thread(lister)
        return [dict(d, platform=d.get("platform", platform)) for d in devices]

    def set_device(self, device_id: str, platform: Optional[str] = None) -> str:
        """选择设备，同时把该平台设为当前目标"""
        platform = self.resolve_platform(platform)
        self._device_ids[platform] = device_id
        self.current_platform = platform
        logger.info(f"设备已切换: {platform}:{device_id}")
        return platform

    def set_target(self, platform: str):
        """切换当前目标平台"""
        self.current_platform = self._check_platform(platform)
        logger.info(f"目标已切换: {platform}")

    def get_target(self) -> Tuple[str, str]:
        """
        获取当前目标及其状态

        Returns:
            (平台, 状态描述)
        """
        platform = self.current_platform
        device_id = self._device_ids.get(platform)
        if not Config.is_platform_enabled(platform):
            status = "disabled"
        elif platform not in self._factories:
            status = "no backend"
        elif self.target_key(platform) in self._adapters:
            status = f"connected, device={device_id or 'auto'}"
        else:
            status = f"not connected, device={device_id or 'auto'}"
        return platform, status
