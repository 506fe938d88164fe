"""
编排核心模块
"""

from .context import ToolContext
from .device_manager import DeviceManager
from .dynamic_config import DynamicConfig
from .registry import MAX_RECURSION_DEPTH, ToolDefinition, ToolRegistry

__all__ = [
    'ToolContext',
    'DeviceManager',
    'DynamicConfig',
    'ToolDefinition',
    'ToolRegistry',
    'MAX_RECURSION_DEPTH',
]
