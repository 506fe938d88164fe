#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
剪贴板工具（Android）

功能：
1. select_text: 全选当前输入框内容
2. copy_text: 全选并复制
3. paste_text: 粘贴（可先点击指定输入框）
4. get_clipboard_android: 读取剪贴板
"""
from mobile_automation.core.element_model import find_by_resource_id, find_by_text
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.errors import ElementNotFound
from mobile_automation.tools.common import schema


async def select_text(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).select_all_text()
    return "Selected all text in focused input field"


async def copy_text(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).copy_text()
    return "Selected all text and copied to clipboard"


async def paste_text(args, ctx, depth):
    platform = ctx.platform(args)
    adapter = ctx.adapter(platform)

    query = args.get("fieldText") or args.get("fieldId")
    if query:
        elements = await ctx.capture_elements(platform)
        if args.get("fieldText"):
            found = find_by_text(elements, query)
        else:
            found = find_by_resource_id(elements, query)
        if not found:
            raise ElementNotFound(f"Field not found: {query}")
        await adapter.tap(found[0].center_x, found[0].center_y)

    await adapter.paste_text()
    return "Pasted clipboard content into focused field"


async def get_clipboard(args, ctx, depth):
    text = await ctx.adapter(ctx.platform(args)).get_clipboard()
    return f"Clipboard: {text}" if text else "Clipboard is empty"


CLIPBOARD_TOOLS = [
    ToolDefinition(
        name="select_text",
        description="Select all text in the focused input field (Android 13+)",
        handler=select_text,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="copy_text",
        description="Select all text in the focused input field and copy it to the clipboard (Android 13+)",
        handler=copy_text,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="paste_text",
        description="Paste the clipboard into the focused field, or into the field found by fieldText / fieldId",
        handler=paste_text,
        input_schema=schema({
            "fieldText": {"type": "string", "description": "Text or hint of the field to tap first"},
            "fieldId": {"type": "string", "description": "Resource ID of the field to tap first"},
        }),
    ),
    ToolDefinition(
        name="get_clipboard_android",
        description="Read the current clipboard text (Android)",
        handler=get_clipboard,
        input_schema=schema(),
    ),
]
