#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
批量执行器 - 按顺序执行一组工具调用（没有控制流）

stop_on_error=True（默认）时遇到第一个失败就停止。
每个命令都通过 ctx.dispatch 重新进入分发器，和 run_flow 共用递归深度保护。
"""
from dataclasses import dataclass
from typing import Any, Dict, List

from mobile_automation.errors import ToolError, ValidationError
from mobile_automation.utils.logger import get_logger

logger = get_logger('batch_executor')


@dataclass(frozen=True)
class BatchEntry:
    """单条命令的执行结果"""

    name: str
    success: bool
    result: str


@dataclass(frozen=True)
class BatchReport:
    entries: List[BatchEntry]
    total: int

    @property
    def failed(self) -> int:
        return sum(1 for e in self.entries if not e.success)

    def render(self) -> str:
        if self.failed:
            summary = f"Batch: {len(self.entries)}/{self.total} executed, {self.failed} failed"
        else:
            summary = f"Batch: {len(self.entries)} commands OK"
        lines = [
            f"{i}. {e.name}: {'OK' if e.success else 'ERROR'} - {e.result}"
            for i, e in enumerate(self.entries, 1)
        ]
        return summary + "\n\n" + "\n".join(lines)


class BatchExecutor:
    """
    批量执行器

    用法:
        executor = BatchExecutor(ctx, depth)
        report = await executor.run([{"name": "tap", "arguments": {"x": 1, "y": 2}}])
    """

    def __init__(self, ctx, depth: int = 0):
        self.ctx = ctx
        self.depth = depth

    async def run(self, commands: List[Dict[str, Any]], stop_on_error: bool = True) -> BatchReport:
        """
        顺序执行命令

        Args:
            commands: [{name, arguments?}, ...]
            stop_on_error: 遇到失败是否停止

        Raises:
            fatal 错误（后端不可用、递归超限）直接抛出
        """
        entries: List[BatchEntry] = []
        logger.info(f"Batch 开始: {len(commands)} 条命令, stopOnError={stop_on_error}")

        for command in commands:
            name = command.get("name", "")
            arguments = command.get("arguments") or {}
            try:
                if not isinstance(arguments, dict):
                    raise ValidationError(f"arguments for {name} must be an object")
                result = await self.ctx.dispatch(name, arguments, self.depth)
            except ToolError as e:
                if e.fatal:
                    raise
                entries.append(BatchEntry(name=name, success=False, result=e.message))
            except Exception as e:
                entries.append(BatchEntry(name=name, success=False, result=str(e) or type(e).__name__))
            else:
                entries.append(BatchEntry(name=name, success=True, result=result.as_text()))
                continue

            logger.debug(f"Batch 命令失败: {name} - {entries[-1].result}")
            if stop_on_error:
                break

        return BatchReport(entries=entries, total=len(commands))
