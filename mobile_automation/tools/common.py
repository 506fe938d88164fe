#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具定义的公共部分：参数 schema 片段、带提示的结果拼接
"""
from typing import Any, Dict, List, Optional

from mobile_automation.core.device_manager import PLATFORMS
from mobile_automation.models import ToolResult

PLATFORM_PARAM = {
    "type": "string",
    "enum": list(PLATFORMS),
    "description": "Target platform. If not specified, uses the active target.",
}

HINTS_PARAM = {
    "type": "boolean",
    "description": "Return a summary of UI changes after the action (default: false)",
    "default": False,
}


def schema(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None,
           platform: bool = True) -> Dict[str, Any]:
    """
    构造 input_schema

    Args:
        properties: 参数定义
        required: 必填参数
        platform: 是否附带 platform 参数
    """
    props = dict(properties or {})
    if platform:
        props["platform"] = PLATFORM_PARAM
    result: Dict[str, Any] = {"type": "object", "properties": props}
    if required:
        result["required"] = list(required)
    return result


async def with_hints(ctx, args: Dict[str, Any], text: str) -> ToolResult:
    """args.hints 为 true 时在结果后追加操作提示（提示失败不影响结果）"""
    if not args.get("hints"):
        return ToolResult(text=text)
    hint = await ctx.generate_hints(args.get("platform"))
    return ToolResult(text=text + hint.render())
