#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具注册表 & 分发器

功能：
1. 注册工具定义（同名后注册覆盖先注册）
2. 隐藏别名：调用时可解析，但不会出现在 list_tools 中
3. 分发前校验参数（jsonschema）
4. 递归深度保护：batch_commands / run_flow 每次重新进入分发器时 depth+1，
   达到上限直接失败，不调用任何处理函数
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from jsonschema import validators
from jsonschema.exceptions import best_match

from mobile_automation.errors import RecursionLimitExceeded, ToolNotFound, ValidationError
from mobile_automation.models import ToolResult
from mobile_automation.utils.logger import get_logger

logger = get_logger('registry')

# batch_commands / run_flow 最大嵌套深度
MAX_RECURSION_DEPTH = 3

Handler = Callable[[Dict[str, Any], Any, int], Awaitable[Union[ToolResult, str]]]


@dataclass(frozen=True)
class ToolDefinition:
    """工具定义：名称 + 参数 schema + 处理函数"""

    name: str
    description: str
    handler: Handler
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})


class ToolRegistry:
    """
    工具注册表

    用法:
        registry = ToolRegistry()
        registry.register(ALL_TOOLS)
        registry.register_aliases({"click": "tap"})
        result = await registry.dispatch("click", {"x": 1, "y": 1}, ctx)
    """

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {}
        self._aliases: Dict[str, str] = {}
        self._validators: Dict[str, Any] = {}

    def register(self, definitions: Iterable[ToolDefinition]):
        """注册工具定义"""
        for definition in definitions:
            self._tools[definition.name] = definition
            self._validators.pop(definition.name, None)

    def register_aliases(self, aliases: Dict[str, str]):
        """注册别名（alias -> 正式名称）"""
        self._aliases.update(aliases)

    def list_tools(self) -> List[ToolDefinition]:
        """列出正式工具（不含别名）"""
        return list(self._tools.values())

    def resolve(self, name: str) -> ToolDefinition:
        """
        解析工具名：先查正式名称，再查别名

        Raises:
            ToolNotFound: 未注册且没有对应别名
        """
        definition = self._tools.get(name)
        if definition is not None:
            return definition

        canonical = self._aliases.get(name)
        if canonical is not None and canonical in self._tools:
            logger.debug(f"别名解析: {name} -> {canonical}")
            return self._tools[canonical]

        raise ToolNotFound(name)

    def validate(self, definition: ToolDefinition, args: Dict[str, Any]):
        """按 input_schema 校验参数"""
        validator = self._validators.get(definition.name)
        if validator is None:
            cls = validators.validator_for(definition.input_schema)
            validator = cls(definition.input_schema)
            self._validators[definition.name] = validator

        error = best_match(validator.iter_errors(args))
        if error is not None:
            path = ".".join(str(p) for p in error.absolute_path)
            where = f" at '{path}'" if path else ""
            raise ValidationError(f"Invalid arguments for {definition.name}{where}: {error.message}")

    async def dispatch(
        self,
        name: str,
        args: Optional[Dict[str, Any]],
        ctx: Any,
        depth: int = 0,
    ) -> ToolResult:
        """
        分发工具调用

        Args:
            name: 工具名或别名
            args: 参数
            ctx: 编排上下文（ToolContext）
            depth: 当前递归深度（顶层调用为 0）

        Returns:
            ToolResult

        Raises:
            RecursionLimitExceeded: depth 已达上限（此时不会调用任何处理函数）
            ToolNotFound / ValidationError / 处理函数抛出的错误
        """
        if depth >= MAX_RECURSION_DEPTH:
            raise RecursionLimitExceeded(MAX_RECURSION_DEPTH)

        definition = self.resolve(name)
        args = dict(args or {})
        self.validate(definition, args)

        logger.debug(f"dispatch {definition.name} depth={depth} args={args}")
        result = await definition.handler(args, ctx, depth + 1)
        if isinstance(result, ToolResult):
            return result
        return ToolResult(text=str(result))
