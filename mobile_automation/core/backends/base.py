#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
后端能力接口 - 每个自动化后端（Android / iOS / Desktop ...）都要实现

编排核心只通过这个接口访问设备，不假设任何具体的层级结构格式：
get_ui_hierarchy 返回的原始数据由 HierarchyParser 按平台转换成 Element。
所有方法都是协程，同步的底层库调用由实现方放进线程池执行。
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from mobile_automation.errors import ToolError

SWIPE_DIRECTIONS = ("up", "down", "left", "right")


class CapabilityAdapter(ABC):
    """后端能力接口"""

    #: 平台名（android / ios / desktop / aurora）
    platform: str = ""

    def __init__(self, device_id: Optional[str] = None):
        self.device_id = device_id

    # ==================== 输入 ====================

    @abstractmethod
    async def tap(self, x: int, y: int):
        ...

    @abstractmethod
    async def long_press(self, x: int, y: int, duration_ms: int = 1000):
        ...

    @abstractmethod
    async def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int = 300):
        ...

    @abstractmethod
    async def swipe_direction(self, direction: str):
        """
        按方向滑动（手指移动方向）

        Args:
            direction: up / down / left / right
        """

    @abstractmethod
    async def input_text(self, text: str):
        ...

    @abstractmethod
    async def press_key(self, key: str):
        ...

    # ==================== 采集 ====================

    @abstractmethod
    async def get_ui_hierarchy(self) -> Any:
        """返回后端原生的层级结构（XML 字符串 / JSON 树）"""

    @abstractmethod
    async def screenshot_bytes(self) -> bytes:
        """返回 PNG 格式的截图原始数据"""

    # ==================== 系统 / 应用 ====================

    @abstractmethod
    async def shell(self, command: str) -> str:
        ...

    @abstractmethod
    async def launch_app(self, package: str):
        ...

    @abstractmethod
    async def stop_app(self, package: str):
        ...

    @abstractmethod
    async def install_app(self, path: str):
        ...

    async def get_current_activity(self) -> Optional[str]:
        """当前前台页面（不支持的后端返回 None）"""
        return None

    async def open_url(self, url: str):
        raise ToolError(f"open_url is not supported on {self.platform}")

    # ==================== 可选能力 ====================
    # 默认实现抛出 ToolError，后端按需覆盖

    def _unsupported(self, name: str):
        raise ToolError(f"{name} is not supported on {self.platform}")

    async def list_apps(self) -> List[str]:
        self._unsupported("list_apps")

    async def get_logs(self, level: Optional[str] = None, tag: Optional[str] = None,
                       lines: int = 100, package: Optional[str] = None) -> str:
        self._unsupported("get_logs")

    async def clear_logs(self):
        self._unsupported("clear_logs")

    async def get_system_info(self) -> str:
        self._unsupported("get_system_info")

    async def grant_permission(self, package: str, permission: str):
        self._unsupported("grant_permission")

    async def revoke_permission(self, package: str, permission: str):
        self._unsupported("revoke_permission")

    async def reset_permissions(self, package: str) -> List[str]:
        """撤销所有已授予的运行时权限，返回被撤销的权限列表"""
        self._unsupported("reset_permissions")

    async def select_all_text(self):
        self._unsupported("select_text")

    async def copy_text(self):
        self._unsupported("copy_text")

    async def paste_text(self):
        self._unsupported("paste_text")

    async def get_clipboard(self) -> Optional[str]:
        self._unsupported("get_clipboard")
