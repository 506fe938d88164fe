#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
系统工具

功能：
1. get_current_activity: 当前前台 Activity / Bundle
2. shell: 执行设备 shell 命令（仅 Android）
3. wait: 固定等待
4. open_url: 用系统浏览器打开链接
5. configure: 运行时调整编排策略（DynamicConfig）
6. get_logs / clear_logs: 设备日志（Android logcat）
7. get_system_info: 电量和内存
"""
import asyncio

from mobile_automation.core.registry import ToolDefinition
from mobile_automation.errors import ValidationError
from mobile_automation.tools.common import schema
from mobile_automation.utils.logger import get_logger

logger = get_logger('tools.system')


async def get_current_activity(args, ctx, depth):
    activity = await ctx.adapter(ctx.platform(args)).get_current_activity()
    return f"Current activity: {activity or 'unknown'}"


async def shell(args, ctx, depth):
    output = await ctx.adapter(ctx.platform(args)).shell(args["command"])
    return output or "(no output)"


async def wait(args, ctx, depth):
    ms = args.get("ms", 1000)
    await asyncio.sleep(ms / 1000)
    return f"Waited {ms}ms"


async def open_url(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).open_url(args["url"])
    return f"Opened URL: {args['url']}"


async def get_logs(args, ctx, depth):
    logs = await ctx.adapter(ctx.platform(args)).get_logs(
        level=args.get("level"),
        tag=args.get("tag"),
        lines=args.get("lines", 100),
        package=args.get("package"),
    )
    return logs.strip() or "(no logs)"


async def clear_logs(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).clear_logs()
    return "Logs cleared"


async def get_system_info(args, ctx, depth):
    return await ctx.adapter(ctx.platform(args)).get_system_info()


async def configure(args, ctx, depth):
    """
    调整运行时策略

    参数:
        reset: true 时先恢复默认值
        settings: 要修改的配置（支持 wait_strategy / retry_strategy / thresholds / stability 分组）
    """
    settings = ctx.settings
    lines = []
    if args.get("reset"):
        lines.append(settings.reset()["message"])

    changes = args.get("settings")
    if changes:
        result = settings.update(changes)
        lines.append("Updated: " + ", ".join(result["updated"]))
    elif not args.get("reset") and changes is not None:
        raise ValidationError("settings must not be empty")

    lines.append(settings.get_summary())
    return "\n".join(lines)


SYSTEM_TOOLS = [
    ToolDefinition(
        name="get_current_activity",
        description="Get the foreground activity (Android) or bundle ID (iOS)",
        handler=get_current_activity,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="shell",
        description="Execute a shell command on the device (ADB shell for Android)",
        handler=shell,
        input_schema=schema({
            "command": {"type": "string", "description": "Shell command to execute"},
        }, required=["command"]),
    ),
    ToolDefinition(
        name="wait",
        description="Wait for the specified duration",
        handler=wait,
        input_schema=schema({
            "ms": {"type": "integer", "minimum": 0, "default": 1000,
                   "description": "Duration in milliseconds (default: 1000)"},
        }, platform=False),
    ),
    ToolDefinition(
        name="open_url",
        description="Open a URL in the device browser",
        handler=open_url,
        input_schema=schema({
            "url": {"type": "string", "description": "URL to open"},
        }, required=["url"]),
    ),
    ToolDefinition(
        name="get_logs",
        description="Get device logs (Android logcat). Filter by level, tag or the package of a running app",
        handler=get_logs,
        input_schema=schema({
            "level": {"type": "string", "enum": ["V", "D", "I", "W", "E", "F"],
                      "description": "Minimum log level (default: V)"},
            "tag": {"type": "string", "description": "Only show logs with this tag"},
            "lines": {"type": "integer", "minimum": 1, "default": 100,
                      "description": "Number of most recent lines (default: 100)"},
            "package": {"type": "string", "description": "Only show logs from this running app"},
        }),
    ),
    ToolDefinition(
        name="clear_logs",
        description="Clear the device log buffer",
        handler=clear_logs,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="get_system_info",
        description="Get battery level and memory usage",
        handler=get_system_info,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="configure",
        description=(
            "Show or adjust runtime settings: wait_strategy (hint_settle, step_delay, retry_delay), "
            "retry_strategy (max_retries, retry_delay), thresholds (screen_change_ratio, "
            "diff_unchanged_percent, diff_full_frame_percent, diff_pixel_threshold, crop_padding), "
            "stability (interval, max_attempts, threshold). Call without arguments to view current values."
        ),
        handler=configure,
        input_schema=schema({
            "settings": {"type": "object", "description": "Settings to change, grouped or flat"},
            "reset": {"type": "boolean", "default": False, "description": "Reset all settings to defaults first"},
        }, platform=False),
    ),
]
