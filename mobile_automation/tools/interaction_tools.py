#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
交互工具：tap / long_press / swipe / input_text / press_key

tap 的定位优先级：
1. index（来自最近一次 get_ui / annotate_screenshot 的缓存）
2. text / label / resourceId（重新采集，优先可点击元素）
3. x, y 坐标
"""
from typing import Any, Dict, Optional, Tuple

from mobile_automation.core.backends.base import SWIPE_DIRECTIONS
from mobile_automation.core.element_model import find_by_resource_id, find_by_text
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.errors import ElementNotFound, ValidationError
from mobile_automation.models import Element
from mobile_automation.tools.common import HINTS_PARAM, schema, with_hints
from mobile_automation.utils.logger import get_logger

logger = get_logger('tools.interaction')

_COORD = {"type": "integer"}


async def _element_by_index(ctx, platform: str, index: int) -> Element:
    elements = ctx.get_cached_elements(platform)
    if not elements:
        elements = await ctx.capture_elements(platform)
    for element in elements:
        if element.index == index:
            return element
    raise ElementNotFound(f"Element with index {index} not found. Run get_ui first.")


async def _element_by_query(ctx, platform: str, args: Dict[str, Any]) -> Element:
    elements = await ctx.capture_elements(platform)
    query = args.get("text") or args.get("label")
    if query:
        found = find_by_text(elements, query)
    else:
        query = args["resourceId"]
        found = find_by_resource_id(elements, query)
    if not found:
        raise ElementNotFound(f"Element not found: {query}")
    clickable = [e for e in found if e.clickable]
    return (clickable or found)[0]


async def _resolve_point(ctx, platform: str, args: Dict[str, Any]) -> Optional[Tuple[int, int]]:
    """按优先级解析点击坐标，没有任何定位参数时返回 None"""
    if args.get("index") is not None:
        element = await _element_by_index(ctx, platform, args["index"])
        return element.center_x, element.center_y
    if args.get("text") or args.get("label") or args.get("resourceId"):
        element = await _element_by_query(ctx, platform, args)
        return element.center_x, element.center_y
    if args.get("x") is not None and args.get("y") is not None:
        return args["x"], args["y"]
    return None


async def tap(args, ctx, depth):
    platform = ctx.platform(args)
    point = await _resolve_point(ctx, platform, args)
    if point is None:
        raise ValidationError("Please provide x,y coordinates, text, resourceId, label, or index")

    x, y = point
    await ctx.adapter(platform).tap(x, y)
    logger.debug(f"tap {platform} ({x}, {y})")
    return await with_hints(ctx, args, f"Tapped at ({x}, {y})")


async def long_press(args, ctx, depth):
    platform = ctx.platform(args)
    duration = args.get("duration", 1000)

    if args.get("text"):
        elements = await ctx.capture_elements(platform)
        found = find_by_text(elements, args["text"])
        if not found:
            raise ElementNotFound(f"Element not found: {args['text']}")
        x, y = found[0].center_x, found[0].center_y
    elif args.get("x") is not None and args.get("y") is not None:
        x, y = args["x"], args["y"]
    else:
        raise ValidationError("Please provide x,y coordinates or text")

    await ctx.adapter(platform).long_press(x, y, duration)
    return await with_hints(ctx, args, f"Long pressed at ({x}, {y}) for {duration}ms")


async def swipe(args, ctx, depth):
    platform = ctx.platform(args)
    adapter = ctx.adapter(platform)

    direction = args.get("direction")
    if direction:
        await adapter.swipe_direction(direction)
        return await with_hints(ctx, args, f"Swiped {direction}")

    coords = [args.get(k) for k in ("x1", "y1", "x2", "y2")]
    if any(c is None for c in coords):
        raise ValidationError("Please provide direction or x1,y1,x2,y2 coordinates")

    x1, y1, x2, y2 = coords
    await adapter.swipe(x1, y1, x2, y2, args.get("duration", 300))
    return await with_hints(ctx, args, f"Swiped from ({x1}, {y1}) to ({x2}, {y2})")


async def input_text(args, ctx, depth):
    platform = ctx.platform(args)
    await ctx.adapter(platform).input_text(args["text"])
    return await with_hints(ctx, args, f'Entered text: "{args["text"]}"')


async def press_key(args, ctx, depth):
    platform = ctx.platform(args)
    await ctx.adapter(platform).press_key(args["key"])
    return await with_hints(ctx, args, f"Pressed key: {args['key']}")


INTERACTION_TOOLS = [
    ToolDefinition(
        name="tap",
        description=(
            "Tap on the screen. Locate the target by index (from get_ui), by text/label/resourceId, "
            "or by x,y coordinates."
        ),
        handler=tap,
        input_schema=schema({
            "x": dict(_COORD, description="X coordinate"),
            "y": dict(_COORD, description="Y coordinate"),
            "text": {"type": "string", "description": "Find element by text and tap it"},
            "label": {"type": "string", "description": "Find element by accessibility label and tap it"},
            "resourceId": {"type": "string", "description": "Find element by resource ID and tap it"},
            "index": {"type": "integer", "minimum": 0,
                      "description": "Tap element by index from the last get_ui output"},
            "hints": HINTS_PARAM,
        }),
    ),
    ToolDefinition(
        name="long_press",
        description="Long press on the screen at coordinates or on an element found by text",
        handler=long_press,
        input_schema=schema({
            "x": dict(_COORD, description="X coordinate"),
            "y": dict(_COORD, description="Y coordinate"),
            "text": {"type": "string", "description": "Find element by text"},
            "duration": {"type": "integer", "minimum": 1, "default": 1000,
                         "description": "Duration in milliseconds (default: 1000)"},
            "hints": HINTS_PARAM,
        }),
    ),
    ToolDefinition(
        name="swipe",
        description="Swipe on the screen by direction or between two points",
        handler=swipe,
        input_schema=schema({
            "direction": {"type": "string", "enum": list(SWIPE_DIRECTIONS),
                          "description": "Swipe direction"},
            "x1": dict(_COORD, description="Start X"),
            "y1": dict(_COORD, description="Start Y"),
            "x2": dict(_COORD, description="End X"),
            "y2": dict(_COORD, description="End Y"),
            "duration": {"type": "integer", "minimum": 1, "default": 300,
                         "description": "Duration in milliseconds (default: 300)"},
            "hints": HINTS_PARAM,
        }),
    ),
    ToolDefinition(
        name="input_text",
        description="Type text into the currently focused input field",
        handler=input_text,
        input_schema=schema({
            "text": {"type": "string", "description": "Text to type"},
            "hints": HINTS_PARAM,
        }, required=["text"]),
    ),
    ToolDefinition(
        name="press_key",
        description="Press a key: BACK, HOME, ENTER, DELETE, VOLUME_UP, VOLUME_DOWN, POWER or a keycode number",
        handler=press_key,
        input_schema=schema({
            "key": {"type": "string", "description": "Key name or keycode"},
            "hints": HINTS_PARAM,
        }, required=["key"]),
    ),
]
