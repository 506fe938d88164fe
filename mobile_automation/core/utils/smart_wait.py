#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
智能等待工具 - 轮询 UI 直到元素出现/消失

策略：
1. 不使用固定等待时间，而是按间隔重新采集元素
2. 最大等待时间保护
3. 轮询中的普通错误忽略（下一轮重试），后端不可用直接抛出
"""
import asyncio
import time
from typing import List, Optional

from mobile_automation.core.element_model import find_elements
from mobile_automation.errors import ElementNotFound, ToolError
from mobile_automation.models import Element
from mobile_automation.utils.logger import get_logger

logger = get_logger('smart_wait')


class SmartWait:
    """
    智能等待工具

    用法:
        waiter = SmartWait(ctx)
        found, elapsed_ms = await waiter.wait_for_element(text="登录", timeout_ms=5000)
    """

    def __init__(self, ctx):
        """
        Args:
            ctx: ToolContext
        """
        self.ctx = ctx

    async def wait_for_element(
        self,
        text: Optional[str] = None,
        resource_id: Optional[str] = None,
        class_name: Optional[str] = None,
        timeout_ms: int = 5000,
        interval_ms: int = 500,
        platform: Optional[str] = None,
    ):
        """
        等待元素出现

        Args:
            text / resource_id / class_name: 查找条件（至少一个）
            timeout_ms: 最大等待时间（毫秒）
            interval_ms: 轮询间隔（毫秒）
            platform: 目标平台

        Returns:
            (匹配的元素列表, 耗时毫秒)

        Raises:
            ElementNotFound: 超时仍未出现
        """
        start = time.monotonic()
        while True:
            found = await self._poll(text, resource_id, class_name, platform)
            elapsed_ms = int((time.monotonic() - start) * 1000)
            if found:
                logger.debug(f"元素已出现（耗时{elapsed_ms}ms）")
                return found, elapsed_ms
            if elapsed_ms + interval_ms > timeout_ms:
                break
            await asyncio.sleep(interval_ms / 1000)

        raise ElementNotFound(
            f"Timeout after {timeout_ms}ms: element not found "
            f"(text={text or ''}, resourceId={resource_id or ''}, className={class_name or ''})"
        )

    async def _poll(self, text, resource_id, class_name, platform) -> List[Element]:
        try:
            elements = await self.ctx.capture_elements(platform)
        except ToolError as e:
            if e.fatal:
                raise
            logger.debug(f"轮询采集失败（忽略）: {e}")
            return []
        return find_elements(elements, text=text, resource_id=resource_id, class_name=class_name)
