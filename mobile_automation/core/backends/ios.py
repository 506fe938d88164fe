#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
iOS 后端 - 使用 tidevice + facebook-wda

前置条件：
1. 安装 iOS 依赖: pip install mobile-automation-mcp[ios]
2. 首次需要用 Xcode 编译 WebDriverAgent 到设备上
3. 配置 WDA_URL 时直接连接该地址，否则通过 USB 连接

两个库都是可选依赖，只有真正使用 iOS 目标时才导入；
缺失时抛出 BackendUnavailable。
"""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import requests

from mobile_automation.config import Config
from mobile_automation.core.backends.base import SWIPE_DIRECTIONS, CapabilityAdapter
from mobile_automation.errors import BackendUnavailable, ToolError
from mobile_automation.utils.logger import get_logger

logger = get_logger('backends.ios')

# WDA press() 支持的按键
WDA_KEYS = {"home": "home", "volume_up": "volumeUp", "volume_down": "volumeDown"}


def _import_wda():
    try:
        import wda
    except ImportError as e:
        raise BackendUnavailable(
            f"缺少iOS自动化依赖: {e}. Install with: pip install facebook-wda tidevice"
        )
    return wda


def _import_tidevice():
    try:
        import tidevice
    except ImportError as e:
        raise BackendUnavailable(
            f"缺少iOS自动化依赖: {e}. Install with: pip install facebook-wda tidevice"
        )
    return tidevice


def list_ios_devices() -> List[Dict[str, str]]:
    """
    列出所有连接的iOS设备（tidevice）

    Returns:
        设备列表，每个设备包含 id, name
    """
    tidevice = _import_tidevice()
    try:
        device_list = tidevice.Usbmux().device_list()
    except Exception as e:
        raise BackendUnavailable(f"usbmuxd not available: {e}")
    return [
        {"id": d.udid, "name": getattr(d, 'name', None) or 'iOS Device', "platform": "ios"}
        for d in device_list
    ]


class IOSAdapter(CapabilityAdapter):
    """
    iOS 设备适配器（WDA）

    用法:
        adapter = IOSAdapter(device_id="00008030-...")
        await adapter.tap(100, 200)
    """

    platform = "ios"

    def __init__(self, device_id: Optional[str] = None, wda_url: Optional[str] = None):
        super().__init__(device_id)
        self.wda_url = wda_url if wda_url is not None else Config.WDA_URL
        self._client = None

    def _connect_wda(self):
        wda = _import_wda()
        if self.wda_url:
            client = wda.Client(self.wda_url)
        else:
            client = wda.USBClient(self.device_id)
        # 测试连接
        if not client.status():
            raise RuntimeError("WDA服务未启动")
        return client

    async def _connect(self):
        if self._client is not None:
            return self._client
        try:
            client = await asyncio.to_thread(self._connect_wda)
        except BackendUnavailable:
            raise
        except Exception as e:
            raise BackendUnavailable(f"连接WDA失败: {e}")
        self._client = client
        logger.info(f"iOS WDA连接成功: {self.wda_url or self.device_id or 'usb'}")
        return client

    async def _call(self, fn: Callable[..., Any]) -> Any:
        client = await self._connect()
        disconnect_errors = (_import_wda().WDAError, requests.exceptions.ConnectionError, ConnectionError)
        try:
            return await asyncio.to_thread(fn, client)
        except disconnect_errors as e:
            # WDA 会话失效或服务断开：丢弃客户端，下次调用重新连接
            self._client = None
            raise BackendUnavailable(f"WDA connection lost: {e}")

    # ==================== 输入 ====================

    async def tap(self, x: int, y: int):
        await self._call(lambda c: c.click(x, y))

    async def long_press(self, x: int, y: int, duration_ms: int = 1000):
        await self._call(lambda c: c.tap_hold(x, y, duration_ms / 1000))

    async def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 300):
        await self._call(lambda c: c.swipe(x1, y1, x2, y2, duration_ms / 1000))

    async def swipe_direction(self, direction: str):
        if direction not in SWIPE_DIRECTIONS:
            raise ToolError(f"Invalid swipe direction: {direction}")
        await self._call(lambda c: getattr(c, f"swipe_{direction}")())

    async def input_text(self, text: str):
        await self._call(lambda c: c.send_keys(text))

    async def press_key(self, key: str):
        name = WDA_KEYS.get(key.strip().lower())
        if name is None:
            raise ToolError(f"Key not supported on iOS: {key} (supported: {', '.join(WDA_KEYS)})")
        await self._call(lambda c: c.press(name))

    # ==================== 采集 ====================

    async def get_ui_hierarchy(self) -> Dict[str, Any]:
        source = await self._call(lambda c: c.source(format='json'))
        if isinstance(source, str):
            return json.loads(source)
        return source

    async def screenshot_bytes(self) -> bytes:
        return await self._call(lambda c: c.screenshot(format='raw'))

    # ==================== 系统 / 应用 ====================

    async def shell(self, command: str) -> str:
        raise ToolError("shell is not supported on iOS")

    async def launch_app(self, package: str):
        await self._call(lambda c: c.app_launch(package))

    async def stop_app(self, package: str):
        await self._call(lambda c: c.app_terminate(package))

    async def install_app(self, path: str):
        tidevice = _import_tidevice()

        def _install():
            return tidevice.Device(self.device_id).app_install(path)

        try:
            await asyncio.to_thread(_install)
        except BackendUnavailable:
            raise
        except Exception as e:
            raise ToolError(f"Install failed: {e}")

    async def get_current_activity(self) -> Optional[str]:
        current = await self._call(lambda c: c.app_current())
        return current.get('bundleId') or None

    async def open_url(self, url: str):
        await self._call(lambda c: c.open_url(url))

    async def list_apps(self) -> List[str]:
        tidevice = _import_tidevice()

        def _installed():
            apps = tidevice.Device(self.device_id).installation.iter_installed(app_type="User")
            return [info.get('CFBundleIdentifier', '') for info in apps]

        try:
            bundle_ids = await asyncio.to_thread(_installed)
        except Exception as e:
            raise ToolError(f"Failed to list apps: {e}")
        return sorted(b for b in bundle_ids if b)
