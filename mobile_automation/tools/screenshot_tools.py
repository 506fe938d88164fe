#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
截图工具：screenshot / annotate_screenshot

screenshot 的 diff 模式只返回变化部分：
- 变化 < 5%：只返回文本
- 5% ~ 80%：返回裁剪后的变化区域
- >= 80%：返回整屏
"""
from mobile_automation.config import Config
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.core.screen_diff import compare, wait_for_stable
from mobile_automation.core.screenshot import (
    annotate_elements,
    compress_image,
    crop_region,
    image_width,
    png_payload,
)
from mobile_automation.models import ToolResult
from mobile_automation.tools.common import schema
from mobile_automation.utils.logger import get_logger

logger = get_logger('tools.screenshot')

_SIZE_PARAMS = {
    "maxWidth": {"type": "integer", "minimum": 1,
                 "description": f"Max width in pixels (default: {Config.SCREENSHOT_MAX_WIDTH})"},
    "maxHeight": {"type": "integer", "minimum": 1,
                  "description": f"Max height in pixels (default: {Config.SCREENSHOT_MAX_HEIGHT})"},
    "quality": {"type": "integer", "minimum": 1, "maximum": 100,
                "description": f"JPEG quality 1-100 (default: {Config.SCREENSHOT_QUALITY})"},
}


def _encoder(args):
    """根据参数返回图片编码函数（压缩为 JPEG 或保留 PNG 原图）"""
    if args.get("compress", True) is False:
        return png_payload

    def encode(data: bytes):
        return compress_image(
            data,
            max_width=args.get("maxWidth", Config.SCREENSHOT_MAX_WIDTH),
            max_height=args.get("maxHeight", Config.SCREENSHOT_MAX_HEIGHT),
            quality=args.get("quality", Config.SCREENSHOT_QUALITY),
        )
    return encode


async def screenshot(args, ctx, depth):
    platform = ctx.platform(args)
    adapter = ctx.adapter(platform)
    settings = ctx.settings
    encode = _encoder(args)

    notes = []
    if args.get("waitStable"):
        capture = await wait_for_stable(
            adapter.screenshot_bytes,
            interval=settings.stable_interval,
            max_attempts=settings.stable_max_attempts,
            threshold_percent=settings.stable_threshold,
        )
        data = capture.image
        if not capture.stable:
            notes.append(f"Screen not stable after {capture.attempts} captures; using latest")
    else:
        data = await adapter.screenshot_bytes()

    previous = ctx.get_last_screenshot(platform)
    ctx.set_last_screenshot(platform, data)

    if not args.get("diff"):
        return ToolResult(image=encode(data), text="\n".join(notes) or None)

    if previous is None:
        notes.insert(0, "First screenshot (no previous to diff against)")
        return ToolResult(image=encode(data), text="\n".join(notes))

    threshold = args.get("diffThreshold", settings.diff_pixel_threshold)
    diff = compare(previous, data, threshold)
    percent = diff.change_percent
    logger.debug(f"截图差异 {percent}% region={diff.changed_region}")

    if percent < settings.diff_unchanged_percent:
        notes.insert(0, f"Screen unchanged ({percent}% diff)")
        return ToolResult(text="\n".join(notes))

    if percent >= settings.diff_full_frame_percent or diff.changed_region is None:
        notes.insert(0, f"Screen changed significantly ({percent}% diff) - full screenshot")
        return ToolResult(image=encode(data), text="\n".join(notes))

    region = diff.changed_region
    cropped = crop_region(data, region, settings.crop_padding)
    notes.insert(0, f"Changed region ({percent}% diff) at ({region.x}, {region.y}) {region.width}x{region.height}")
    return ToolResult(image=encode(cropped), text="\n".join(notes))


async def annotate_screenshot(args, ctx, depth):
    platform = ctx.platform(args)
    adapter = ctx.adapter(platform)
    data = await adapter.screenshot_bytes()
    encode = _encoder(args)

    elements = await ctx.capture_elements(platform)
    targets = [e for e in elements if e.clickable or e.label]
    if not targets:
        return ToolResult(image=encode(data), text="No UI elements found to annotate. Returning plain screenshot.")

    scale = 1.0
    if platform == "ios":
        # WDA 坐标是逻辑点，截图是物理像素
        logical_width = max(e.bounds.x2 for e in elements)
        width = image_width(data)
        if logical_width > 0:
            scale = width / logical_width

    annotated = annotate_elements(data, targets, scale)
    lines = [
        f"  {e.index}: {'[clickable] ' if e.clickable else ''}{e.label or e.short_class} @ ({e.center_x}, {e.center_y})"
        for e in targets
    ]
    return ToolResult(
        image=encode(annotated),
        text=f"Annotated {len(targets)} elements (tap with index):\n" + "\n".join(lines),
    )


SCREENSHOT_TOOLS = [
    ToolDefinition(
        name="screenshot",
        description=(
            "Take a screenshot of the device screen. Images are compressed by default. "
            "Use diff mode to only see what changed since the last screenshot "
            "(<5% change = text only, 5-80% = cropped region, >80% = full screenshot)."
        ),
        handler=screenshot,
        input_schema=schema({
            "compress": {"type": "boolean", "default": True,
                         "description": "Compress image (default: true). Set false for original PNG."},
            **_SIZE_PARAMS,
            "diff": {"type": "boolean", "default": False,
                     "description": "Compare with the previous screenshot and return only the changed region"},
            "diffThreshold": {"type": "integer", "minimum": 0, "maximum": 255, "default": 30,
                              "description": "Pixel difference threshold 0-255 for diff mode (default: 30)"},
            "waitStable": {"type": "boolean", "default": False,
                           "description": "Wait until the screen stops changing before capturing"},
        }),
    ),
    ToolDefinition(
        name="annotate_screenshot",
        description=(
            "Take a screenshot with numbered boxes on UI elements. Green = clickable, Red = non-clickable. "
            "Numbers can be used with tap(index=N)."
        ),
        handler=annotate_screenshot,
        input_schema=schema({
            "compress": {"type": "boolean", "default": True, "description": "Compress image (default: true)"},
            **_SIZE_PARAMS,
        }),
    ),
]
