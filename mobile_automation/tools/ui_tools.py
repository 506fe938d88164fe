#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
UI 检查工具

功能：
1. get_ui / find_element: 查看和查找元素（结果写入元素缓存，供 tap(index) 使用）
2. find_and_tap: 按自然语言描述模糊匹配并点击
3. analyze_screen: 结构化屏幕分析
4. wait_for_element: 轮询等待元素出现
5. assert_visible / assert_not_exists: 断言
"""
from mobile_automation.core.element_model import analyze_screen as build_analysis
from mobile_automation.core.element_model import find_best_match, find_elements
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.core.utils import SmartWait
from mobile_automation.errors import AssertionFailed, ElementNotFound, ToolError, ValidationError
from mobile_automation.tools.common import schema
from mobile_automation.utils.logger import get_logger

logger = get_logger('tools.ui')

FIND_RESULT_LIMIT = 20
DEFAULT_MIN_CONFIDENCE = 30

_TEXT = {"type": "string", "description": "Find by text (partial match, case-insensitive)"}
_RESOURCE_ID = {"type": "string", "description": "Find by resource ID (partial match)"}
_CLASS_NAME = {"type": "string", "description": "Find by class name"}


def _criteria(args):
    return "text={}, resourceId={}".format(args.get("text") or "", args.get("resourceId") or "")


async def get_ui(args, ctx, depth):
    platform = ctx.platform(args)
    elements = await ctx.capture_elements(platform)
    return ctx.formatter.format_ui_tree(elements, show_all=bool(args.get("showAll")))


async def find_element(args, ctx, depth):
    platform = ctx.platform(args)
    elements = await ctx.capture_elements(platform)
    found = find_elements(
        elements,
        text=args.get("text"),
        resource_id=args.get("resourceId"),
        class_name=args.get("className"),
        clickable=args.get("clickable"),
    )
    if not found:
        raise ElementNotFound("No elements found matching criteria")

    lines = [ctx.formatter.format_element(e) for e in found[:FIND_RESULT_LIMIT]]
    if len(found) > FIND_RESULT_LIMIT:
        lines.append("...")
    return f"Found {len(found)} element(s):\n" + "\n".join(lines)


async def find_and_tap(args, ctx, depth):
    platform = ctx.platform(args)
    description = args["description"]
    min_confidence = args.get("minConfidence", DEFAULT_MIN_CONFIDENCE)

    elements = await ctx.capture_elements(platform)
    match = find_best_match(elements, description)
    if match is None:
        raise ElementNotFound(
            f'No element found matching "{description}". '
            f"Try using get_ui or analyze_screen to see available elements."
        )
    if match.confidence < min_confidence:
        raise ElementNotFound(
            f"Best match has low confidence ({match.confidence}%): {match.reason}\n"
            f"Element: {ctx.formatter.format_element(match.element)}\n"
            f"Set minConfidence lower or use tap with coordinates."
        )

    x, y = match.element.center_x, match.element.center_y
    await ctx.adapter(platform).tap(x, y)
    logger.info(f'find_and_tap "{description}" -> ({x}, {y}) {match.confidence}%')
    return (
        f'Tapped "{description}" ({match.confidence}% confidence)\n'
        f"Match: {match.reason}\n"
        f"Coordinates: ({x}, {y})"
    )


async def analyze_screen(args, ctx, depth):
    platform = ctx.platform(args)
    elements = await ctx.capture_elements(platform)

    activity = None
    try:
        activity = await ctx.adapter(platform).get_current_activity()
    except ToolError as e:
        if e.fatal:
            raise
        logger.debug(f"获取当前 Activity 失败: {e.message}")

    return ctx.formatter.format_screen_analysis(build_analysis(elements, activity))


async def wait_for_element(args, ctx, depth):
    text = args.get("text")
    resource_id = args.get("resourceId")
    class_name = args.get("className")
    if not (text or resource_id or class_name):
        raise ValidationError("Provide at least one search criteria: text, resourceId, or className")

    found, elapsed_ms = await SmartWait(ctx).wait_for_element(
        text=text,
        resource_id=resource_id,
        class_name=class_name,
        timeout_ms=args.get("timeout", 5000),
        interval_ms=args.get("interval", 500),
        platform=ctx.platform(args),
    )
    result = f"Element found after {elapsed_ms}ms:\n{ctx.formatter.format_element(found[0])}"
    if len(found) > 1:
        result += f"\n({len(found)} total matches)"
    return result


async def _lookup(args, ctx):
    if not (args.get("text") or args.get("resourceId")):
        raise ValidationError("Provide text or resourceId to assert")
    elements = await ctx.capture_elements(ctx.platform(args))
    return find_elements(elements, text=args.get("text"), resource_id=args.get("resourceId"))


async def assert_visible(args, ctx, depth):
    found = await _lookup(args, ctx)
    if not found:
        raise AssertionFailed(f"FAIL: Element not visible ({_criteria(args)})")
    return f"PASS: Element visible - {ctx.formatter.format_element(found[0])}"


async def assert_not_exists(args, ctx, depth):
    found = await _lookup(args, ctx)
    if found:
        raise AssertionFailed(f"FAIL: Element exists - {ctx.formatter.format_element(found[0])}")
    return f"PASS: Element not present ({_criteria(args)})"


UI_TOOLS = [
    ToolDefinition(
        name="get_ui",
        description=(
            "Get the current UI hierarchy (accessibility tree). Shows interactive elements with their "
            "text, IDs, and coordinates. Element indexes can be used with tap(index=N)."
        ),
        handler=get_ui,
        input_schema=schema({
            "showAll": {"type": "boolean", "default": False,
                        "description": "Show all elements including non-interactive ones"},
        }),
    ),
    ToolDefinition(
        name="find_element",
        description="Find elements by text, resource ID, class name or clickable state",
        handler=find_element,
        input_schema=schema({
            "text": _TEXT,
            "resourceId": _RESOURCE_ID,
            "className": _CLASS_NAME,
            "clickable": {"type": "boolean", "description": "Filter by clickable"},
        }),
    ),
    ToolDefinition(
        name="find_and_tap",
        description=(
            "Find an element by natural language description and tap it. "
            "Uses fuzzy matching on text, content description and resource ID."
        ),
        handler=find_and_tap,
        input_schema=schema({
            "description": {"type": "string",
                            "description": "Element description, e.g. 'login button' or 'Settings'"},
            "minConfidence": {"type": "number", "minimum": 0, "maximum": 100, "default": 30,
                              "description": "Minimum confidence score (0-100) to accept a match (default: 30)"},
        }, required=["description"]),
    ),
    ToolDefinition(
        name="analyze_screen",
        description=(
            "Get a structured summary of the screen: buttons, input fields, texts, "
            "scrollable areas, title and dialogs."
        ),
        handler=analyze_screen,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="wait_for_element",
        description="Wait until an element appears on screen (polls the UI hierarchy)",
        handler=wait_for_element,
        input_schema=schema({
            "text": _TEXT,
            "resourceId": _RESOURCE_ID,
            "className": _CLASS_NAME,
            "timeout": {"type": "integer", "minimum": 0, "default": 5000,
                        "description": "Max wait time in ms (default: 5000)"},
            "interval": {"type": "integer", "minimum": 1, "default": 500,
                         "description": "Poll interval in ms (default: 500)"},
        }),
    ),
    ToolDefinition(
        name="assert_visible",
        description="Assert that an element is visible on screen. Fails if not found.",
        handler=assert_visible,
        input_schema=schema({
            "text": {"type": "string", "description": "Element text to check for (partial match)"},
            "resourceId": _RESOURCE_ID,
        }),
    ),
    ToolDefinition(
        name="assert_not_exists",
        description="Assert that an element is NOT present on screen. Fails if found.",
        handler=assert_not_exists,
        input_schema=schema({
            "text": {"type": "string", "description": "Element text that should NOT be present"},
            "resourceId": _RESOURCE_ID,
        }),
    ),
]
