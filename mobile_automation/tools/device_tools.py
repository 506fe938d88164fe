#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
设备工具：list_devices / set_device / set_target / get_target
"""
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.tools.common import PLATFORM_PARAM, schema

_PLATFORM_TITLES = {"android": "Android", "ios": "iOS", "desktop": "Desktop", "aurora": "Aurora"}


async def list_devices(args, ctx, depth):
    platform = args.get("platform")
    devices = await ctx.device_manager.list_devices(platform)
    if not devices:
        return "No devices connected. Make sure ADB/Xcode is running and a device/emulator/simulator is connected."

    manager = ctx.device_manager
    lines = ["Connected devices:"]
    for name, title in _PLATFORM_TITLES.items():
        group = [d for d in devices if d.get("platform") == name]
        if not group:
            continue
        lines.append(f"\n{title}:")
        selected = manager.device_id_for(name) or group[0]["id"]
        for d in group:
            active = " [ACTIVE]" if manager.current_platform == name and d["id"] == selected else ""
            details = ", ".join(v for v in (d.get("name"), d.get("state")) if v)
            lines.append(f"  - {d['id']}" + (f" ({details})" if details else "") + active)
    return "\n".join(lines)


async def set_device(args, ctx, depth):
    platform = ctx.device_manager.set_device(args["deviceId"], args.get("platform"))
    return f"Device set to: {args['deviceId']} ({platform})"


async def set_target(args, ctx, depth):
    ctx.device_manager.set_target(args["target"])
    return f"Target set to: {args['target']}"


async def get_target(args, ctx, depth):
    target, status = ctx.device_manager.get_target()
    return f"Current target: {target} ({status})"


DEVICE_TOOLS = [
    ToolDefinition(
        name="list_devices",
        description="List all connected Android devices/emulators and iOS devices",
        handler=list_devices,
        input_schema=schema(),
    ),
    ToolDefinition(
        name="set_device",
        description="Select which device to use for subsequent commands",
        handler=set_device,
        input_schema=schema(
            {"deviceId": {"type": "string", "description": "Device ID from list_devices"}},
            required=["deviceId"],
        ),
    ),
    ToolDefinition(
        name="set_target",
        description="Switch the active target between Android, iOS, Desktop, and Aurora platforms",
        handler=set_target,
        input_schema=schema(
            {"target": dict(PLATFORM_PARAM, description="Target platform to switch to")},
            required=["target"],
            platform=False,
        ),
    ),
    ToolDefinition(
        name="get_target",
        description="Get the current active target and its status",
        handler=get_target,
        input_schema=schema(platform=False),
    ),
]
