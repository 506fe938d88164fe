#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
测试公共夹具

- FakeAdapter: 内存中的后端，记录所有调用，层级结构 / 截图可按顺序预设
- ctx: 注册了全部工具、所有等待时间为 0 的编排上下文
"""
import io
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import quoteattr

import pytest
from PIL import Image

from mobile_automation.core import DeviceManager, DynamicConfig, ToolContext
from mobile_automation.core.backends.base import CapabilityAdapter
from mobile_automation.errors import ToolError
from mobile_automation.tools import build_registry


def node(text="", resource_id="", cls="android.widget.TextView", bounds=(0, 0, 100, 50),
         clickable=False, desc="", enabled=True, scrollable=False, **extra) -> Dict[str, Any]:
    """构造一个 UIAutomator 节点的属性"""
    attrs = {
        "text": text,
        "resource-id": resource_id,
        "class": cls,
        "package": "com.example.app",
        "content-desc": desc,
        "clickable": "true" if clickable else "false",
        "enabled": "true" if enabled else "false",
        "scrollable": "true" if scrollable else "false",
        "bounds": "[{},{}][{},{}]".format(*bounds),
    }
    attrs.update(extra)
    return attrs


def hierarchy(*nodes: Dict[str, Any]) -> str:
    """把节点列表拼成 UIAutomator dump 的 XML"""
    body = "".join(
        "<node " + " ".join(f"{k}={quoteattr(str(v))}" for k, v in attrs.items()) + " />"
        for attrs in nodes
    )
    return (
        "<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>"
        f'<hierarchy rotation="0">{body}</hierarchy>'
    )


def png(color=(255, 255, 255), size=(100, 200), box=None, box_color=(0, 0, 0)) -> bytes:
    """生成 PNG 截图，box=(x1, y1, x2, y2) 时画一个色块"""
    image = Image.new("RGB", size, color)
    if box is not None:
        x1, y1, x2, y2 = box
        image.paste(box_color, (x1, y1, x2, y2))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


LOGIN_SCREEN = hierarchy(
    node(text="Welcome", bounds=(0, 50, 1080, 150)),
    node(resource_id="com.example.app:id/username", cls="android.widget.EditText",
         bounds=(40, 400, 1040, 500), clickable=True),
    node(text="Login", resource_id="com.example.app:id/login_button", cls="android.widget.Button",
         bounds=(40, 600, 1040, 700), clickable=True),
    node(text="Forgot password?", bounds=(40, 800, 500, 850)),
)

HOME_SCREEN = hierarchy(
    node(text="Home", bounds=(0, 50, 1080, 150)),
    node(text="Settings", cls="android.widget.Button", bounds=(40, 300, 1040, 400), clickable=True),
    node(text="Profile", cls="android.widget.Button", bounds=(40, 500, 1040, 600), clickable=True),
    node(resource_id="com.example.app:id/feed", cls="androidx.recyclerview.widget.RecyclerView",
         bounds=(0, 700, 1080, 1900), scrollable=True),
)


class FakeAdapter(CapabilityAdapter):
    """
    内存后端

    - hierarchies: 每次 get_ui_hierarchy 取下一个，取完后一直返回最后一个
    - screenshots: 同上
    - failures: {方法名: 异常}，调用该方法时抛出
    """

    platform = "android"

    def __init__(self, device_id: Optional[str] = None):
        super().__init__(device_id)
        self.calls: List[tuple] = []
        self.hierarchies: List[Any] = [LOGIN_SCREEN]
        self.screenshots: List[bytes] = [png()]
        self.activity: Optional[str] = "com.example.app/.MainActivity"
        self.shell_output = ""
        self.logs = ""
        self.apps: List[str] = ["com.android.settings", "com.example.app", "com.example.shop"]
        self.granted: List[str] = []
        self.clipboard: Optional[str] = "hello"
        self.failures: Dict[str, Exception] = {}

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        error = self.failures.get(name)
        if error is not None:
            raise error

    def calls_to(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    @staticmethod
    def _next(queue):
        return queue.pop(0) if len(queue) > 1 else queue[0]

    async def tap(self, x, y):
        self._record("tap", x, y)

    async def long_press(self, x, y, duration_ms=1000):
        self._record("long_press", x, y, duration_ms)

    async def swipe(self, x1, y1, x2, y2, duration_ms=300):
        self._record("swipe", x1, y1, x2, y2, duration_ms)

    async def swipe_direction(self, direction):
        self._record("swipe_direction", direction)

    async def input_text(self, text):
        self._record("input_text", text)

    async def press_key(self, key):
        self._record("press_key", key)

    async def get_ui_hierarchy(self):
        self._record("get_ui_hierarchy")
        return self._next(self.hierarchies)

    async def screenshot_bytes(self):
        self._record("screenshot_bytes")
        return self._next(self.screenshots)

    async def shell(self, command):
        self._record("shell", command)
        return self.shell_output

    async def launch_app(self, package):
        self._record("launch_app", package)

    async def stop_app(self, package):
        self._record("stop_app", package)

    async def install_app(self, path):
        self._record("install_app", path)

    async def get_current_activity(self):
        self._record("get_current_activity")
        return self.activity

    async def open_url(self, url):
        self._record("open_url", url)

    async def list_apps(self):
        self._record("list_apps")
        return list(self.apps)

    async def get_logs(self, level=None, tag=None, lines=100, package=None):
        self._record("get_logs", level, tag, lines, package)
        return self.logs

    async def clear_logs(self):
        self._record("clear_logs")

    async def get_system_info(self):
        self._record("get_system_info")
        return "Battery: 85% (charging)\nMemory: 2048 MB available of 4096 MB"

    async def grant_permission(self, package, permission):
        self._record("grant_permission", package, permission)

    async def revoke_permission(self, package, permission):
        self._record("revoke_permission", package, permission)

    async def reset_permissions(self, package):
        self._record("reset_permissions", package)
        return list(self.granted)

    async def select_all_text(self):
        self._record("select_all_text")

    async def copy_text(self):
        self._record("copy_text")

    async def paste_text(self):
        self._record("paste_text")

    async def get_clipboard(self):
        self._record("get_clipboard")
        return self.clipboard


@pytest.fixture
def adapter():
    return FakeAdapter("emulator-5554")


@pytest.fixture
def settings():
    """所有等待时间为 0 的运行时策略"""
    return DynamicConfig(
        hint_settle_delay=0,
        step_delay=0,
        retry_delay=0,
        stable_interval=0,
    )


@pytest.fixture
def ctx(adapter, settings):
    manager = DeviceManager(platform="android", device_id="emulator-5554")
    manager.register_adapter("android", lambda device_id: adapter, lambda: [
        {"id": "emulator-5554", "name": "Pixel 7", "state": "device"},
    ])
    return ToolContext(build_registry(), manager, settings)


@pytest.fixture
def broken_ctx(ctx, adapter):
    """所有 UI 采集都失败的上下文"""
    adapter.failures["get_ui_hierarchy"] = ToolError("uiautomator not responding")
    return ctx
