#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
截图差异引擎

功能：
1. compare: 计算两张截图的变化百分比和最小变化区域
2. wait_for_stable: 连续截图直到画面稳定（超过次数上限也返回最后一张，不阻塞）

调用方的分级策略（见 screenshot 工具）：
- 变化 < 5%：视为未变化，不返回图片
- 5% ~ 80%：只返回裁剪后的变化区域
- >= 80% 或无法确定区域：返回整屏
"""
import asyncio
import io
from dataclasses import dataclass
from typing import Awaitable, Callable

import numpy as np
from PIL import Image

from mobile_automation.models import Region, ScreenDiff
from mobile_automation.utils.logger import get_logger

logger = get_logger('screen_diff')

DEFAULT_PIXEL_THRESHOLD = 30


def _load_rgb(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as img:
        return np.asarray(img.convert("RGB"), dtype=np.int16)


def compare(prev: bytes, current: bytes, pixel_threshold: int = DEFAULT_PIXEL_THRESHOLD) -> ScreenDiff:
    """
    对比两张截图

    Args:
        prev: 上一张截图（PNG/JPEG 原始数据）
        current: 当前截图
        pixel_threshold: 单通道差异超过该值的像素才算变化（0-255）

    Returns:
        ScreenDiff（尺寸不同视为 100% 变化，没有区域）
    """
    a = _load_rgb(prev)
    b = _load_rgb(current)
    if a.shape != b.shape:
        return ScreenDiff(change_percent=100.0)

    mask = (np.abs(a - b) > pixel_threshold).any(axis=2)
    changed = int(mask.sum())
    if changed == 0:
        return ScreenDiff(change_percent=0.0)

    percent = round(changed / mask.size * 100, 1)
    ys, xs = np.nonzero(mask)
    x1, x2 = int(xs.min()), int(xs.max())
    y1, y2 = int(ys.min()), int(ys.max())
    region = Region(x=x1, y=y1, width=x2 - x1 + 1, height=y2 - y1 + 1)
    return ScreenDiff(change_percent=percent, changed_region=region)


@dataclass(frozen=True)
class StableCapture:
    """稳定等待结果：最后一张截图 + 是否达到稳定"""

    image: bytes
    stable: bool
    attempts: int


async def wait_for_stable(
    capture: Callable[[], Awaitable[bytes]],
    interval: float = 0.3,
    max_attempts: int = 5,
    threshold_percent: float = 1.0,
    pixel_threshold: int = DEFAULT_PIXEL_THRESHOLD,
) -> StableCapture:
    """
    等待画面稳定

    按固定间隔连续截图，相邻两张变化小于 threshold_percent 即认为稳定。
    超过 max_attempts 仍未稳定时返回最后一张截图（stable=False），继续执行。

    Args:
        capture: 截图协程
        interval: 截图间隔（秒）
        max_attempts: 最多截图次数
        threshold_percent: 稳定阈值（百分比）
        pixel_threshold: 像素差异阈值
    """
    latest = await capture()
    attempts = 1
    while attempts < max(max_attempts, 1):
        await asyncio.sleep(interval)
        previous, latest = latest, await capture()
        attempts += 1
        diff = compare(previous, latest, pixel_threshold)
        if diff.change_percent < threshold_percent:
            logger.debug(f"画面已稳定（{attempts} 次截图，变化 {diff.change_percent}%）")
            return StableCapture(image=latest, stable=True, attempts=attempts)

    logger.debug(f"画面未稳定（{attempts} 次截图），使用最后一张")
    return StableCapture(image=latest, stable=False, attempts=attempts)
