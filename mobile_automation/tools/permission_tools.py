#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
运行时权限工具（Android）：grant_permission / revoke_permission / reset_permissions
"""
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.tools.common import schema

_PACKAGE = {"type": "string", "description": "Package name, e.g. com.example.app"}
_PERMISSION = {"type": "string", "description": "Permission name, e.g. android.permission.CAMERA"}


async def grant_permission(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).grant_permission(args["package"], args["permission"])
    return f"Granted {args['permission']} to {args['package']}"


async def revoke_permission(args, ctx, depth):
    await ctx.adapter(ctx.platform(args)).revoke_permission(args["package"], args["permission"])
    return f"Revoked {args['permission']} from {args['package']}"


async def reset_permissions(args, ctx, depth):
    package = args["package"]
    revoked = await ctx.adapter(ctx.platform(args)).reset_permissions(package)
    if not revoked:
        return f"No runtime permissions granted for {package}"
    return f"Reset {len(revoked)} permission(s) for {package}: " + ", ".join(revoked)


PERMISSION_TOOLS = [
    ToolDefinition(
        name="grant_permission",
        description="Grant a runtime permission to an app (Android)",
        handler=grant_permission,
        input_schema=schema({"package": _PACKAGE, "permission": _PERMISSION},
                            required=["package", "permission"]),
    ),
    ToolDefinition(
        name="revoke_permission",
        description="Revoke a runtime permission from an app (Android)",
        handler=revoke_permission,
        input_schema=schema({"package": _PACKAGE, "permission": _PERMISSION},
                            required=["package", "permission"]),
    ),
    ToolDefinition(
        name="reset_permissions",
        description="Revoke every granted runtime permission of an app (Android)",
        handler=reset_permissions,
        input_schema=schema({"package": _PACKAGE}, required=["package"]),
    ),
]
