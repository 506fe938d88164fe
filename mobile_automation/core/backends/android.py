#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Android 后端 - 基于 uiautomator2 + adbutils

功能：
1. 列出已连接设备（adbutils）
2. 延迟连接设备（第一次调用时才 u2.connect）
3. 点击、长按、滑动、输入、按键
4. 层级结构 dump、截图（PNG）、shell、应用管理
5. 日志（logcat）、电量/内存、运行时权限（pm grant / revoke）、剪贴板

设备断开（uiautomator2 DeviceError、adb 错误、连接错误）统一转换为 BackendUnavailable。

uiautomator2 是同步库，所有调用都通过 asyncio.to_thread 放进线程池，
不阻塞事件循环。
"""
import asyncio
import io
import re
import shlex
from typing import Any, Callable, Dict, List, Optional

import adbutils
import requests
import uiautomator2 as u2
from uiautomator2.exceptions import DeviceError

from mobile_automation.core.backends.base import SWIPE_DIRECTIONS, CapabilityAdapter
from mobile_automation.errors import BackendUnavailable, ToolError, ValidationError
from mobile_automation.utils.logger import get_logger

logger = get_logger('backends.android')

# 常用按键名 -> uiautomator2 press() 接受的名字
KEY_ALIASES = {
    "enter": "enter",
    "return": "enter",
    "back": "back",
    "home": "home",
    "menu": "menu",
    "recent": "recent",
    "recents": "recent",
    "app_switch": "recent",
    "delete": "delete",
    "backspace": "delete",
    "del": "delete",
    "search": "search",
    "volume_up": "volume_up",
    "volume_down": "volume_down",
    "volume_mute": "volume_mute",
    "power": "power",
    "camera": "camera",
    "tab": 61,
    "escape": 111,
    "dpad_up": "up",
    "dpad_down": "down",
    "dpad_left": "left",
    "dpad_right": "right",
    "dpad_center": "center",
}

# 这些异常表示设备/服务已经断开，继续重试没有意义
DISCONNECT_ERRORS = (
    DeviceError,
    adbutils.AdbError,
    requests.exceptions.ConnectionError,
    ConnectionError,
)

LOG_LEVELS = "VDIWEF"

KEYCODE_CTRL_LEFT = 113
KEYCODE_A = 29
KEYCODE_COPY = 278
KEYCODE_PASTE = 279

# dumpsys battery 的 status 字段
BATTERY_STATUS = {
    "1": "unknown",
    "2": "charging",
    "3": "discharging",
    "4": "not charging",
    "5": "full",
}

_SHELL_FAILURE_RE = re.compile(r'Exception|Error:|Unknown (permission|package)|not a changeable permission')
_RUNTIME_PERMISSION_RE = re.compile(r'^\s*([\w.]+): granted=true', re.MULTILINE)


def _field(text: str, name: str) -> Optional[str]:
    match = re.search(rf'^\s*{re.escape(name)}:\s*(\S+)', text, re.MULTILINE)
    return match.group(1) if match else None


def format_system_info(battery: str, meminfo: str) -> str:
    """
    把 dumpsys battery 和 /proc/meminfo 的输出整理成两行摘要

    Args:
        battery: dumpsys battery 输出
        meminfo: /proc/meminfo 内容
    """
    lines = []
    level = _field(battery, "level")
    if level is not None:
        status = BATTERY_STATUS.get(_field(battery, "status") or "", "unknown")
        line = f"Battery: {level}% ({status})"
        temperature = _field(battery, "temperature")
        if temperature and temperature.isdigit():
            # 单位是 0.1 摄氏度
            line += f", {int(temperature) / 10:.1f}°C"
        lines.append(line)
    else:
        lines.append("Battery: unknown")

    total = _field(meminfo, "MemTotal")
    available = _field(meminfo, "MemAvailable") or _field(meminfo, "MemFree")
    if total and available and total.isdigit() and available.isdigit():
        lines.append(f"Memory: {int(available) // 1024} MB available of {int(total) // 1024} MB")
    else:
        lines.append("Memory: unknown")
    return "\n".join(lines)


def granted_runtime_permissions(dumpsys_output: str) -> List[str]:
    """从 dumpsys package 输出中取出 runtime permissions 段里已授予的权限"""
    # install permissions 段在前面，只看 runtime permissions 之后的部分
    start = dumpsys_output.find("runtime permissions:")
    if start < 0:
        return []
    seen = []
    for name in _RUNTIME_PERMISSION_RE.findall(dumpsys_output[start:]):
        if name not in seen:
            seen.append(name)
    return seen


def list_android_devices() -> List[Dict[str, str]]:
    """
    列出所有连接的 Android 设备

    Returns:
        设备列表，每个设备包含 id 和 state
    """
    try:
        devices = adbutils.adb.device_list()
    except adbutils.AdbError as e:
        raise BackendUnavailable(f"ADB not available: {e}")
    return [{"id": d.serial, "state": d.get_state(), "platform": "android"} for d in devices]


class AndroidAdapter(CapabilityAdapter):
    """
    Android 设备适配器

    用法:
        adapter = AndroidAdapter(device_id="emulator-5554")
        await adapter.tap(100, 200)
    """

    platform = "android"

    def __init__(self, device_id: Optional[str] = None):
        super().__init__(device_id)
        self._device = None

    async def _connect(self):
        if self._device is not None:
            return self._device
        try:
            device = await asyncio.to_thread(u2.connect, self.device_id)
            info = await asyncio.to_thread(lambda: device.info)
        except Exception as e:
            raise BackendUnavailable(
                f"Failed to connect Android device {self.device_id or '(auto)'}: {e}"
            )
        self._device = device
        logger.info(f"Android 设备已连接: {self.device_id or device.serial} "
                    f"({info.get('productName', 'unknown')})")
        return device

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        device = await self._connect()
        try:
            return await asyncio.to_thread(fn, device, *args, **kwargs)
        except DISCONNECT_ERRORS as e:
            # 连接断开：丢弃设备句柄，下次调用重新连接
            self._device = None
            raise BackendUnavailable(f"Android device disconnected: {e}")

    # ==================== 输入 ====================

    async def tap(self, x: int, y: int):
        await self._call(lambda d: d.click(x, y))

    async def long_press(self, x: int, y: int, duration_ms: int = 1000):
        await self._call(lambda d: d.long_click(x, y, duration_ms / 1000))

    async def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 300):
        await self._call(lambda d: d.swipe(x1, y1, x2, y2, duration=duration_ms / 1000))

    async def swipe_direction(self, direction: str):
        if direction not in SWIPE_DIRECTIONS:
            raise ToolError(f"Invalid swipe direction: {direction}")
        await self._call(lambda d: d.swipe_ext(direction, scale=0.8))

    async def input_text(self, text: str):
        await self._call(lambda d: d.send_keys(text))

    async def press_key(self, key: str):
        name = key.strip()
        if name.isdigit():
            code: Any = int(name)
        else:
            code = KEY_ALIASES.get(name.lower(), name.lower())
        await self._call(lambda d: d.press(code))

    # ==================== 采集 ====================

    async def get_ui_hierarchy(self) -> str:
        return await self._call(lambda d: d.dump_hierarchy(compressed=False))

    async def screenshot_bytes(self) -> bytes:
        image = await self._call(lambda d: d.screenshot(format='pillow'))
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        return buffer.getvalue()

    # ==================== 系统 / 应用 ====================

    async def shell(self, command: str) -> str:
        response = await self._call(lambda d: d.shell(command))
        return response.output

    async def launch_app(self, package: str):
        await self._call(lambda d: d.app_start(package))

    async def stop_app(self, package: str):
        await self._call(lambda d: d.app_stop(package))

    async def install_app(self, path: str):
        await self._call(lambda d: d.app_install(path))

    async def get_current_activity(self) -> Optional[str]:
        current = await self._call(lambda d: d.app_current())
        package = current.get('package', '')
        activity = current.get('activity', '')
        if not package:
            return None
        return f"{package}/{activity}" if activity else package

    async def open_url(self, url: str):
        await self._call(lambda d: d.open_url(url))

    async def list_apps(self) -> List[str]:
        apps = await self._call(lambda d: d.app_list())
        return sorted(str(app) for app in apps)

    async def _checked_shell(self, command: str) -> str:
        """执行 shell，输出里有错误信息时抛出 ToolError"""
        output = (await self.shell(command)).strip()
        if _SHELL_FAILURE_RE.search(output):
            raise ToolError(output.splitlines()[0])
        return output

    # ==================== 日志 / 系统信息 ====================

    async def get_logs(self, level: Optional[str] = None, tag: Optional[str] = None,
                       lines: int = 100, package: Optional[str] = None) -> str:
        level = (level or "V").strip().upper()[:1]
        if level not in LOG_LEVELS:
            raise ValidationError(f"Invalid log level: {level} (expected one of {', '.join(LOG_LEVELS)})")

        command = f"logcat -d -t {int(lines)}"
        if package:
            pid = (await self.shell(f"pidof {shlex.quote(package)}")).strip()
            if not pid:
                raise ToolError(f"App is not running: {package}")
            command += f" --pid={pid.split()[0]}"
        if tag:
            command += f" -s {shlex.quote(f'{tag}:{level}')}"
        elif level != "V":
            command += f" {shlex.quote(f'*:{level}')}"
        return await self.shell(command)

    async def clear_logs(self):
        await self.shell("logcat -c")

    async def get_system_info(self) -> str:
        battery = await self.shell("dumpsys battery")
        meminfo = await self.shell("cat /proc/meminfo")
        return format_system_info(battery, meminfo)

    # ==================== 权限 ====================

    async def grant_permission(self, package: str, permission: str):
        await self._checked_shell(f"pm grant {shlex.quote(package)} {shlex.quote(permission)}")

    async def revoke_permission(self, package: str, permission: str):
        await self._checked_shell(f"pm revoke {shlex.quote(package)} {shlex.quote(permission)}")

    async def reset_permissions(self, package: str) -> List[str]:
        dump = await self.shell(f"dumpsys package {shlex.quote(package)}")
        if "runtime permissions:" not in dump and "Unable to find package" in dump:
            raise ToolError(f"Unknown package: {package}")
        granted = granted_runtime_permissions(dump)
        for permission in granted:
            await self.revoke_permission(package, permission)
        return granted

    # ==================== 剪贴板 ====================

    async def select_all_text(self):
        # input keycombination 需要 Android 13+
        output = (await self.shell(f"input keycombination {KEYCODE_CTRL_LEFT} {KEYCODE_A}")).strip()
        if output:
            raise ToolError(f"Select all failed (requires Android 13+): {output.splitlines()[0]}")

    async def copy_text(self):
        await self.select_all_text()
        await asyncio.sleep(0.1)
        await self.shell(f"input keyevent {KEYCODE_COPY}")

    async def paste_text(self):
        await self.shell(f"input keyevent {KEYCODE_PASTE}")

    async def get_clipboard(self) -> Optional[str]:
        return await self._call(lambda d: d.clipboard)
