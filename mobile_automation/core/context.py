#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
编排上下文 - 构造一次，传给分发器和每个工具处理函数

包含：
1. 工具注册表（处理函数通过 ctx.dispatch 重新进入分发器）
2. 设备/目标管理
3. 运行时策略（DynamicConfig 实例）
4. 按目标隔离的缓存：最近一次元素采集、最近一次截图
"""
from typing import Any, Dict, List, Optional

from mobile_automation.core.backends.base import CapabilityAdapter
from mobile_automation.core.device_manager import DeviceManager
from mobile_automation.core.dynamic_config import DynamicConfig
from mobile_automation.core.hints import generate_action_hints
from mobile_automation.core.registry import ToolRegistry
from mobile_automation.models import Element, HintResult, ToolResult
from mobile_automation.utils.element_formatter import ElementFormatter
from mobile_automation.utils.hierarchy_parser import HierarchyParser
from mobile_automation.utils.logger import get_logger

logger = get_logger('context')


class ToolContext:
    """
    编排上下文

    用法:
        ctx = ToolContext(registry, DeviceManager())
        result = await ctx.dispatch("tap", {"x": 100, "y": 200})
    """

    def __init__(
        self,
        registry: ToolRegistry,
        device_manager: Optional[DeviceManager] = None,
        settings: Optional[DynamicConfig] = None,
    ):
        self.registry = registry
        self.device_manager = device_manager or DeviceManager()
        self.settings = settings or DynamicConfig()
        self.parser = HierarchyParser()
        self.formatter = ElementFormatter()
        self._elements: Dict[str, List[Element]] = {}
        self._screenshots: Dict[str, bytes] = {}

    # ==================== 分发 ====================

    async def dispatch(self, name: str, args: Optional[Dict[str, Any]] = None, depth: int = 0) -> ToolResult:
        """调用工具（batch / flow 传入自己收到的 depth）"""
        return await self.registry.dispatch(name, args, self, depth)

    # ==================== 目标 ====================

    def platform(self, args: Optional[Dict[str, Any]] = None) -> str:
        """参数中的 platform 优先，否则使用当前目标"""
        return self.device_manager.resolve_platform((args or {}).get("platform"))

    def adapter(self, platform: Optional[str] = None) -> CapabilityAdapter:
        return self.device_manager.get_adapter(platform)

    def target_key(self, platform: Optional[str] = None) -> str:
        return self.device_manager.target_key(platform)

    # ==================== 元素缓存 ====================

    def get_cached_elements(self, platform: Optional[str] = None) -> List[Element]:
        return self._elements.get(self.target_key(platform), [])

    def set_cached_elements(self, platform: Optional[str], elements: List[Element]):
        self._elements[self.target_key(platform)] = elements

    async def capture_elements(self, platform: Optional[str] = None) -> List[Element]:
        """采集层级结构、解析成 Element 并更新缓存"""
        platform = self.device_manager.resolve_platform(platform)
        raw = await self.adapter(platform).get_ui_hierarchy()
        elements = self.parser.parse(platform, raw)
        self.set_cached_elements(platform, elements)
        logger.debug(f"采集 {self.target_key(platform)}: {len(elements)} 个元素")
        return elements

    # ==================== 截图缓存（diff 模式） ====================

    def get_last_screenshot(self, platform: Optional[str] = None) -> Optional[bytes]:
        return self._screenshots.get(self.target_key(platform))

    def set_last_screenshot(self, platform: Optional[str], data: bytes):
        self._screenshots[self.target_key(platform)] = data

    # ==================== 操作提示 ====================

    async def generate_hints(self, platform: Optional[str] = None) -> HintResult:
        return await generate_action_hints(self, platform)
