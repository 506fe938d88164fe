#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
错误类型

- ToolError: 所有工具错误的基类
- fatal=True 的错误（RecursionLimitExceeded / BackendUnavailable）会穿透
  Flow / Batch 的单步恢复逻辑，直接终止整个调用链
"""


class ToolError(Exception):
    """工具执行错误基类"""

    fatal = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ToolNotFound(ToolError):
    """工具未注册且没有对应别名"""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class RecursionLimitExceeded(ToolError):
    """batch_commands / run_flow 嵌套层数超限"""

    fatal = True

    def __init__(self, max_depth: int):
        super().__init__(
            f"Maximum recursion depth ({max_depth}) exceeded. "
            f"Nested batch_commands/run_flow calls are limited to prevent stack overflow."
        )
        self.max_depth = max_depth


class ElementNotFound(ToolError):
    """元素未找到（可被 Flow 的 if_not_found 策略处理）"""


class BackendUnavailable(ToolError):
    """后端不可用（设备未连接、依赖缺失等），不做任何重试"""

    fatal = True


class ValidationError(ToolError):
    """参数或 Flow 定义不合法，在执行任何步骤前拒绝"""


class AssertionFailed(ToolError):
    """断言类工具失败"""


def is_not_found(error: BaseException) -> bool:
    """判断错误是否属于"元素未找到"类"""
    if isinstance(error, ElementNotFound):
        return True
    message = str(error)
    return "not found" in message or "No element" in message
