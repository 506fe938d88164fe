#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
组合工具：batch_commands / run_flow

两者都通过 ctx.dispatch 重新进入分发器，传入自己收到的 depth，
嵌套层数由分发器统一限制。
"""
from mobile_automation.core.batch_executor import BatchExecutor
from mobile_automation.core.flow_engine import (
    FLOW_ALLOWED_ACTIONS,
    FLOW_DEFAULT_DURATION_MS,
    FLOW_MAX_DURATION_MS,
    FLOW_MAX_STEPS,
    IF_NOT_FOUND_POLICIES,
    ON_ERROR_POLICIES,
    FlowEngine,
    clamp_duration,
    parse_flow,
)
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.tools.common import PLATFORM_PARAM


async def batch_commands(args, ctx, depth):
    commands = args.get("commands") or []
    if not commands:
        return "No commands provided"

    report = await BatchExecutor(ctx, depth).run(commands, stop_on_error=args.get("stopOnError", True))
    return report.render()


async def run_flow(args, ctx, depth):
    raw_steps = args.get("steps") or []
    if not raw_steps:
        return "No steps provided"

    # 整个 Flow 先校验，任何一步不合法都不执行
    steps = parse_flow(raw_steps)
    max_duration_ms = clamp_duration(args.get("maxDuration"))

    report = await FlowEngine(ctx, depth).run(steps, max_duration_ms, platform=args.get("platform"))
    return report.render()


FLOW_TOOLS = [
    ToolDefinition(
        name="batch_commands",
        description=(
            "Execute multiple commands in sequence in a single round-trip. "
            "Each command is {name, arguments}. Stops on the first error unless stopOnError is false."
        ),
        handler=batch_commands,
        input_schema={
            "type": "object",
            "properties": {
                "commands": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string", "description": "Tool name (e.g. 'tap', 'wait', 'input_text')"},
                            "arguments": {"type": "object", "description": "Tool arguments"},
                        },
                        "required": ["name"],
                    },
                    "description": "Array of commands to execute sequentially",
                },
                "stopOnError": {"type": "boolean", "default": True,
                                "description": "Stop execution on first error (default: true)"},
            },
            "required": ["commands"],
        },
    ),
    ToolDefinition(
        name="run_flow",
        description=(
            "Execute a multi-step automation flow in a single round-trip. Supports conditional logic "
            "(if_not_found), loops (repeat) and error handling (on_error). "
            f"Max {FLOW_MAX_STEPS} steps, {FLOW_MAX_DURATION_MS // 1000}s timeout."
        ),
        handler=run_flow,
        input_schema={
            "type": "object",
            "properties": {
                "steps": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "action": {"type": "string",
                                       "description": "Tool name: " + ", ".join(FLOW_ALLOWED_ACTIONS)},
                            "args": {"type": "object", "description": "Tool arguments"},
                            "if_not_found": {
                                "type": "string",
                                "description": "Fallback when element not found: " + ", ".join(IF_NOT_FOUND_POLICIES),
                            },
                            "repeat": {
                                "type": "object",
                                "properties": {
                                    "times": {"type": "integer", "description": "Repeat N times (max 10)"},
                                    "until_found": {"type": "string",
                                                    "description": "Repeat until element with this text appears"},
                                    "until_not_found": {"type": "string",
                                                        "description": "Repeat until element with this text disappears"},
                                },
                                "description": "Loop control",
                            },
                            "on_error": {
                                "type": "string",
                                "description": "Error handling (default: stop): " + ", ".join(ON_ERROR_POLICIES),
                            },
                            "label": {"type": "string", "description": "Label for logging"},
                        },
                        "required": ["action"],
                    },
                    "description": "Steps to execute sequentially",
                },
                "maxDuration": {
                    "type": "number",
                    "default": FLOW_DEFAULT_DURATION_MS,
                    "description": f"Max total duration in ms (default: {FLOW_DEFAULT_DURATION_MS}, max: {FLOW_MAX_DURATION_MS})",
                },
                "platform": PLATFORM_PARAM,
            },
            "required": ["steps"],
        },
    ),
]
