#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
操作提示 - 在点击/滑动等操作之后重新采集 UI，报告出现/消失的元素

提示是尽力而为的：重新采集失败时返回带 error 的 HintResult，
绝不影响主操作的结果。
"""
import asyncio
from typing import Optional

from mobile_automation.core.element_model import diff_elements, suggest_next_actions
from mobile_automation.models import HintResult
from mobile_automation.utils.logger import get_logger

logger = get_logger('hints')

MAX_LABELS = 10


def _join(labels, limit: int = MAX_LABELS) -> str:
    shown = [label[:40] for label in labels[:limit]]
    if len(labels) > limit:
        shown.append(f"... (+{len(labels) - limit})")
    return ", ".join(shown)


async def generate_action_hints(ctx, platform: Optional[str] = None) -> HintResult:
    """
    生成操作提示

    Args:
        ctx: ToolContext
        platform: 目标平台（None=当前目标）

    Returns:
        HintResult（text 为提示内容；采集失败时 error 为原因）
    """
    before = ctx.get_cached_elements(platform)

    await asyncio.sleep(ctx.settings.hint_settle_delay)

    try:
        after = await ctx.capture_elements(platform)
    except Exception as e:
        logger.warning(f"提示采集失败: {e}")
        return HintResult(error=str(e) or type(e).__name__)

    if not before and not after:
        return HintResult(text="No UI elements detected.")

    diff = diff_elements(before, after, ctx.settings.screen_change_ratio)
    suggestions = suggest_next_actions(after)

    lines = []
    if diff.screen_changed:
        lines.append("Screen changed (new activity or major UI update)")
    if diff.appeared:
        lines.append(f"New: {_join(diff.appeared)}")
    if diff.disappeared:
        lines.append(f"Gone: {_join(diff.disappeared)}")
    lines.append(f"Elements: {diff.before_count} -> {diff.after_count}")
    if suggestions:
        lines.append(f"Suggested: {'; '.join(suggestions)}")
    return HintResult(text="\n".join(lines))
