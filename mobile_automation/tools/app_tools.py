#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
应用管理工具：launch_app / stop_app / install_app / list_apps
"""
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.tools.common import schema

_PACKAGE = {
    "type": "string",
    "description": "Package name (Android) or bundle ID (iOS), e.g. com.android.settings or com.apple.Preferences",
}


async def launch_app(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).launch_app(args["package"])
    return f"Launched: {args['package']}"


async def stop_app(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).stop_app(args["package"])
    return f"Stopped: {args['package']}"


async def install_app(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).install_app(args["path"])
    return f"Installed: {args['path']}"


async def list_apps(args, ctx, depth):
    apps = await ctx.adapter(ctx.platform(args)).list_apps()
    keyword = (args.get("filter") or "").lower()
    if keyword:
        apps = [app for app in apps if keyword in app.lower()]
    if not apps:
        return f"No installed packages matching '{args['filter']}'" if keyword else "No installed packages"
    return f"Installed packages ({len(apps)}):\n" + "\n".join(apps)


APP_TOOLS = [
    ToolDefinition(
        name="launch_app",
        description="Launch an app by package name (Android) or bundle ID (iOS)",
        handler=launch_app,
        input_schema=schema({"package": _PACKAGE}, required=["package"]),
    ),
    ToolDefinition(
        name="stop_app",
        description="Force stop an app",
        handler=stop_app,
        input_schema=schema({"package": _PACKAGE}, required=["package"]),
    ),
    ToolDefinition(
        name="install_app",
        description="Install an app. APK for Android, .ipa or .app for iOS",
        handler=install_app,
        input_schema=schema({
            "path": {"type": "string", "description": "Path to APK (Android) or .ipa/.app (iOS)"},
        }, required=["path"]),
    ),
    ToolDefinition(
        name="list_apps",
        description="List installed apps (package names on Android, user app bundle IDs on iOS)",
        handler=list_apps,
        input_schema=schema({
            "filter": {"type": "string", "description": "Only list packages containing this text"},
        }),
    ),
]
