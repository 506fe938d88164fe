"""
工具定义

按功能分组：设备、截图、交互、UI、应用、权限、剪贴板、系统、组合（batch / flow）。
build_registry() 返回注册了全部工具和隐藏别名的注册表。
"""

from mobile_automation.core.registry import ToolRegistry

from .app_tools import APP_TOOLS
from .clipboard_tools import CLIPBOARD_TOOLS
from .device_tools import DEVICE_TOOLS
from .flow_tools import FLOW_TOOLS
from .interaction_tools import INTERACTION_TOOLS
from .permission_tools import PERMISSION_TOOLS
from .screenshot_tools import SCREENSHOT_TOOLS
from .system_tools import SYSTEM_TOOLS
from .ui_tools import UI_TOOLS

ALL_TOOLS = (
    DEVICE_TOOLS
    + SCREENSHOT_TOOLS
    + INTERACTION_TOOLS
    + UI_TOOLS
    + APP_TOOLS
    + PERMISSION_TOOLS
    + CLIPBOARD_TOOLS
    + SYSTEM_TOOLS
    + FLOW_TOOLS
)

# 兼容旧名称（可调用，但不出现在工具列表中）
ALIASES = {
    "click": "tap",
    "type_text": "input_text",
    "take_screenshot": "screenshot",
    "get_ui_hierarchy": "get_ui",
    "start_app": "launch_app",
    "terminate_app": "stop_app",
    "sleep": "wait",
}


def build_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(ALL_TOOLS)
    registry.register_aliases(ALIASES)
    return registry


__all__ = ['ALL_TOOLS', 'ALIASES', 'build_registry']
