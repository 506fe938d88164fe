#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Flow 执行引擎 - 在一次调用中执行多步自动化流程

功能：
1. 执行前校验：步数上限、动作白名单、repeat / if_not_found / on_error 取值
   （任何一步不合法，整个 Flow 被拒绝，不执行任何步骤）
2. 全局时间预算：每一步、每次重复前都检查，超时后追加超时结果并停止
3. 重复：固定次数，或直到某文本出现/消失（until_found / until_not_found）
4. 元素未找到时的回退：skip / scroll_down / scroll_up / fail
5. 错误策略：stop / skip / retry

每一步都通过 ctx.dispatch 重新进入分发器，和 batch_commands 共用递归深度保护。
已经执行的操作不会回滚。
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from mobile_automation.core.element_model import find_by_text
from mobile_automation.errors import ToolError, ValidationError, is_not_found
from mobile_automation.utils.logger import get_logger

logger = get_logger('flow_engine')

# 允许在 Flow 中使用的动作（不包含 run_flow / batch_commands 等组合工具）
FLOW_ALLOWED_ACTIONS = (
    "tap", "swipe", "input_text", "press_key", "wait", "wait_for_element",
    "screenshot", "analyze_screen", "assert_visible", "assert_not_exists",
    "find_and_tap", "find_element", "open_url",
)

FLOW_MAX_STEPS = 20
FLOW_DEFAULT_DURATION_MS = 30000
FLOW_MAX_DURATION_MS = 60000
FLOW_MAX_REPEAT = 10

IF_NOT_FOUND_POLICIES = ("skip", "scroll_down", "scroll_up", "fail")
ON_ERROR_POLICIES = ("stop", "skip", "retry")

MESSAGE_LIMIT = 200
SCROLL_MESSAGE_LIMIT = 150


@dataclass(frozen=True)
class RepeatSpec:
    """重复控制：固定次数，或直到某文本出现/消失"""

    times: int = 1
    until_found: Optional[str] = None
    until_not_found: Optional[str] = None

    @property
    def has_condition(self) -> bool:
        return bool(self.until_found or self.until_not_found)

    @property
    def max_iterations(self) -> int:
        return FLOW_MAX_REPEAT if self.has_condition else self.times


@dataclass(frozen=True)
class FlowStep:
    """Flow 中的一步"""

    action: str
    args: Dict[str, Any] = field(default_factory=dict)
    if_not_found: Optional[str] = None
    repeat: RepeatSpec = RepeatSpec()
    on_error: str = "stop"
    label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int) -> "FlowStep":
        """
        从 Flow 文档解析一步

        Args:
            data: {action, args?, if_not_found?, repeat?, on_error?, label?}
            position: 步骤序号（从 1 开始，用于错误信息）

        Raises:
            ValidationError: 任一字段不合法
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Step {position} must be an object")

        action = data.get("action")
        if action not in FLOW_ALLOWED_ACTIONS:
            raise ValidationError(
                f'Action "{action}" is not allowed in flows. Allowed: {", ".join(FLOW_ALLOWED_ACTIONS)}'
            )

        args = data.get("args") or {}
        if not isinstance(args, dict):
            raise ValidationError(f"Step {position}: args must be an object")

        if_not_found = data.get("if_not_found")
        if if_not_found is not None and if_not_found not in IF_NOT_FOUND_POLICIES:
            raise ValidationError(
                f"Step {position}: invalid if_not_found '{if_not_found}' "
                f"(expected one of {', '.join(IF_NOT_FOUND_POLICIES)})"
            )

        on_error = data.get("on_error") or "stop"
        if on_error not in ON_ERROR_POLICIES:
            raise ValidationError(
                f"Step {position}: invalid on_error '{on_error}' "
                f"(expected one of {', '.join(ON_ERROR_POLICIES)})"
            )

        label = data.get("label")
        return cls(
            action=action,
            args=dict(args),
            if_not_found=if_not_found,
            repeat=_parse_repeat(data.get("repeat"), position),
            on_error=on_error,
            label=str(label) if label else None,
        )


def _parse_repeat(raw: Any, position: int) -> RepeatSpec:
    if raw is None:
        return RepeatSpec()
    if not isinstance(raw, dict):
        raise ValidationError(f"Step {position}: repeat must be an object")

    times = raw.get("times")
    if times is None:
        times = 1
    elif isinstance(times, bool) or not isinstance(times, (int, float)) or times != int(times) or times < 1:
        raise ValidationError(f"Step {position}: repeat.times must be a positive integer")

    until_found = raw.get("until_found")
    until_not_found = raw.get("until_not_found")
    for key, value in (("until_found", until_found), ("until_not_found", until_not_found)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"Step {position}: repeat.{key} must be a string")

    # 超过上限的次数截断到上限
    return RepeatSpec(
        times=min(int(times), FLOW_MAX_REPEAT),
        until_found=until_found or None,
        until_not_found=until_not_found or None,
    )


def parse_flow(steps: Any) -> List[FlowStep]:
    """
    校验并解析整个 Flow（在执行任何步骤之前）

    Raises:
        ValidationError: 步数超限或任一步不合法
    """
    if not isinstance(steps, list):
        raise ValidationError("steps must be an array")
    if len(steps) > FLOW_MAX_STEPS:
        raise ValidationError(f"Too many steps ({len(steps)}). Maximum is {FLOW_MAX_STEPS}.")
    return [FlowStep.from_dict(step, i + 1) for i, step in enumerate(steps)]


def clamp_duration(max_duration: Optional[float]) -> int:
    """maxDuration（毫秒）：默认 30000，上限 60000"""
    if max_duration is None:
        return FLOW_DEFAULT_DURATION_MS
    if max_duration <= 0:
        raise ValidationError("maxDuration must be positive")
    return int(min(max_duration, FLOW_MAX_DURATION_MS))


@dataclass(frozen=True)
class FlowStepResult:
    """单步执行结果（追加后不再修改）"""

    step: int
    action: str
    label: Optional[str]
    success: bool
    message: str
    duration_ms: int

    def render(self) -> str:
        label = f" ({self.label})" if self.label else ""
        status = "OK" if self.success else "FAIL"
        return f"{self.step}. {self.action}{label}: {status} - {self.message} ({self.duration_ms}ms)"


@dataclass(frozen=True)
class FlowReport:
    """Flow 执行报告"""

    results: List[FlowStepResult]
    total_ms: int

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    def render(self) -> str:
        lines = [f"Flow completed ({self.total_ms}ms)", ""]
        lines.extend(r.render() for r in self.results)
        return "\n".join(lines)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class FlowEngine:
    """
    Flow 执行引擎

    用法:
        engine = FlowEngine(ctx, depth)
        report = await engine.run(parse_flow(steps), max_duration_ms=30000)
    """

    def __init__(self, ctx, depth: int = 0):
        """
        Args:
            ctx: ToolContext
            depth: 当前递归深度（run_flow 处理函数收到的 depth，原样传给每一步）
        """
        self.ctx = ctx
        self.depth = depth

    async def run(
        self,
        steps: List[FlowStep],
        max_duration_ms: int = FLOW_DEFAULT_DURATION_MS,
        platform: Optional[str] = None,
    ) -> FlowReport:
        """
        执行 Flow

        Args:
            steps: 已校验的步骤（parse_flow 的结果）
            max_duration_ms: 时间预算（毫秒）
            platform: 目标平台（注入到每一步的参数中）

        Returns:
            FlowReport

        Raises:
            fatal 错误（后端不可用、递归超限）直接抛出，不做单步恢复
        """
        platform = self.ctx.device_manager.resolve_platform(platform)
        flow_start = time.monotonic()
        results: List[FlowStepResult] = []
        logger.info(f"Flow 开始: {len(steps)} 步, 预算 {max_duration_ms}ms, 平台 {platform}")

        for i, step in enumerate(steps):
            number = i + 1
            if _elapsed_ms(flow_start) > max_duration_ms:
                results.append(self._timeout_result(number, step, max_duration_ms))
                break

            result, timed_out = await self._run_step(number, step, platform, flow_start, max_duration_ms)
            if result is not None:
                results.append(result)
                logger.debug(f"步骤 {number} {step.action}: {'OK' if result.success else 'FAIL'} - {result.message}")
            if timed_out:
                results.append(self._timeout_result(number, step, max_duration_ms))
                break
            if result is not None and not result.success and step.on_error == "stop":
                break

        report = FlowReport(results=results, total_ms=_elapsed_ms(flow_start))
        logger.info(f"Flow 结束: {len(results)} 条结果, 耗时 {report.total_ms}ms")
        return report

    @staticmethod
    def _timeout_result(number: int, step: FlowStep, max_duration_ms: int) -> FlowStepResult:
        return FlowStepResult(
            step=number, action=step.action, label=step.label, success=False,
            message=f"Flow timeout ({max_duration_ms}ms exceeded)", duration_ms=0,
        )

    async def _run_step(self, number, step: FlowStep, platform, flow_start, max_duration_ms):
        """
        执行一步（含重复、回退、重试）

        Returns:
            (结果, 是否因超时中断)
        """
        step_args = dict(step.args)
        step_args.setdefault("platform", platform)
        settings = self.ctx.settings
        retry_budget = min(settings.max_retries, FLOW_MAX_REPEAT)
        retries = 0
        iteration = 0
        last: Optional[FlowStepResult] = None

        def make(success: bool, message: str, started: float) -> FlowStepResult:
            return FlowStepResult(
                step=number, action=step.action, label=step.label, success=success,
                message=message, duration_ms=_elapsed_ms(started),
            )

        while iteration < step.repeat.max_iterations:
            if _elapsed_ms(flow_start) > max_duration_ms:
                return last, True

            started = time.monotonic()
            try:
                result = await self.ctx.dispatch(step.action, step_args, self.depth)
            except ToolError as e:
                if e.fatal:
                    raise
                error: Exception = e
            except Exception as e:
                logger.debug(f"步骤 {number} 异常: {e!r}")
                error = e
            else:
                iteration += 1
                last = make(True, result.as_text()[:MESSAGE_LIMIT], started)
                if not step.repeat.has_condition:
                    continue
                if await self._condition_met(step.repeat, platform):
                    return last, False
                if iteration < step.repeat.max_iterations:
                    await asyncio.sleep(settings.step_delay)
                continue

            message = str(error) or type(error).__name__

            # 元素未找到 + 指定了回退策略
            if step.if_not_found and is_not_found(error):
                if step.if_not_found == "skip":
                    return make(True, "Skipped (element not found)", started), False
                if step.if_not_found in ("scroll_down", "scroll_up"):
                    return await self._scroll_and_retry(step, step_args, platform, started, make), False
                return make(False, message[:MESSAGE_LIMIT], started), False

            if step.on_error == "retry" and retries < retry_budget:
                retries += 1
                logger.debug(f"步骤 {number} 重试 {retries}/{retry_budget}: {message}")
                await asyncio.sleep(settings.retry_delay)
                continue

            return make(False, message[:MESSAGE_LIMIT], started), False

        if last is not None and step.repeat.has_condition:
            # 条件一直未满足，达到上限后结束循环
            target = step.repeat.until_found or step.repeat.until_not_found
            note = f" (condition '{target}' not met after {iteration} iterations)"
            last = FlowStepResult(
                step=last.step, action=last.action, label=last.label, success=last.success,
                message=last.message[:MESSAGE_LIMIT - len(note)] + note, duration_ms=last.duration_ms,
            )
        return last, False

    async def _condition_met(self, repeat: RepeatSpec, platform: str) -> bool:
        """重新采集 UI，检查 until_found / until_not_found"""
        try:
            elements = await self.ctx.capture_elements(platform)
        except ToolError as e:
            if e.fatal:
                raise
            logger.debug(f"条件检查采集失败（忽略）: {e}")
            return False
        except Exception as e:
            logger.debug(f"条件检查采集失败（忽略）: {e!r}")
            return False

        if repeat.until_found and find_by_text(elements, repeat.until_found):
            return True
        if repeat.until_not_found and not find_by_text(elements, repeat.until_not_found):
            return True
        return False

    async def _scroll_and_retry(self, step: FlowStep, step_args, platform, started, make) -> FlowStepResult:
        """滚动一次后重试原步骤（只重试一次）"""
        # scroll_down：内容向下翻，手指向上滑
        direction = "up" if step.if_not_found == "scroll_down" else "down"
        suffix = f" (after {step.if_not_found})"
        try:
            await self.ctx.dispatch("swipe", {"direction": direction, "platform": platform}, self.depth)
            await asyncio.sleep(self.ctx.settings.step_delay)
            result = await self.ctx.dispatch(step.action, step_args, self.depth)
        except ToolError as e:
            if e.fatal:
                raise
            return make(False, e.message[:MESSAGE_LIMIT - len(suffix)] + suffix, started)
        except Exception as e:
            return make(False, (str(e) or type(e).__name__)[:MESSAGE_LIMIT - len(suffix)] + suffix, started)
        return make(True, result.as_text()[:SCROLL_MESSAGE_LIMIT] + suffix, started)
