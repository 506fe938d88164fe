#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
动态配置管理器 - 运行时可调整的编排策略

功能：
1. 提供默认策略参数（提示等待、Flow 重试、截图差异分级、页面稳定检测）
2. 支持运行时动态调整（通过 configure 工具）
3. 每个 ToolContext 持有自己的实例，不同目标之间互不影响

注意：递归深度、Flow 步数上限、最长执行时间、重复次数上限是安全约束，
不在这里，也不允许运行时修改。
"""
from typing import Any, Dict

from mobile_automation.errors import ValidationError
from mobile_automation.utils.logger import get_logger

logger = get_logger('dynamic_config')


# 嵌套分组 -> {外部键名: 属性名}
_GROUPS = {
    "wait_strategy": {
        "hint_settle": "hint_settle_delay",
        "step_delay": "step_delay",
        "retry_delay": "retry_delay",
    },
    "retry_strategy": {
        "max_retries": "max_retries",
        "retry_delay": "retry_delay",
    },
    "thresholds": {
        "screen_change_ratio": "screen_change_ratio",
        "diff_unchanged_percent": "diff_unchanged_percent",
        "diff_full_frame_percent": "diff_full_frame_percent",
        "diff_pixel_threshold": "diff_pixel_threshold",
        "crop_padding": "crop_padding",
    },
    "stability": {
        "interval": "stable_interval",
        "max_attempts": "stable_max_attempts",
        "threshold": "stable_threshold",
    },
}


class DynamicConfig:
    """
    动态配置（运行时可调整）

    用法:
        config = DynamicConfig()
        config.update({"retry_strategy": {"max_retries": 5}})
    """

    DEFAULTS: Dict[str, Any] = {
        # ==================== 等待时间策略（秒） ====================
        # 操作后等待 UI 稳定再采集提示
        "hint_settle_delay": 0.15,
        # Flow 重复迭代之间 / 滚动之后的等待
        "step_delay": 0.3,
        # on_error=retry 时的重试间隔
        "retry_delay": 0.3,

        # ==================== 重试策略 ====================
        "max_retries": 3,

        # ==================== 页面检测阈值 ====================
        # 元素数量变化超过较大集合的这个比例，认为进入了新页面
        "screen_change_ratio": 0.3,
        # 截图差异分级（百分比）：低于 unchanged 视为未变化，高于 full_frame 返回整屏
        "diff_unchanged_percent": 5.0,
        "diff_full_frame_percent": 80.0,
        # 单像素单通道差异阈值（0-255）
        "diff_pixel_threshold": 30,
        # 裁剪变化区域时的外扩边距（像素）
        "crop_padding": 20,

        # ==================== 页面稳定检测 ====================
        "stable_interval": 0.3,
        "stable_max_attempts": 5,
        "stable_threshold": 1.0,
    }

    def __init__(self, **overrides):
        self.reset()
        if overrides:
            self._apply(overrides, [])

    def reset(self) -> Dict[str, Any]:
        """重置所有配置为默认值"""
        for name, value in self.DEFAULTS.items():
            setattr(self, name, value)
        return {"success": True, "message": "All settings reset to defaults"}

    def update(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        更新配置

        Args:
            config: 配置字典，支持分组嵌套（wait_strategy / retry_strategy /
                    thresholds / stability），也支持直接使用属性名

        Returns:
            更新结果（updated 列出修改过的项）

        示例:
            config.update({
                "wait_strategy": {"hint_settle": 0.3},
                "max_retries": 5,
            })
        """
        updated = []
        self._apply(config, updated)
        logger.info(f"配置已更新: {', '.join(updated) or '(none)'}")
        return {"success": True, "updated": updated}

    def _apply(self, config: Dict[str, Any], updated: list):
        # 先校验再修改，避免部分生效
        pending = {}
        for key, value in config.items():
            if key in _GROUPS:
                if not isinstance(value, dict):
                    raise ValidationError(f"Config group '{key}' must be an object")
                for sub_key, sub_value in value.items():
                    attr = _GROUPS[key].get(sub_key)
                    if attr is None:
                        raise ValidationError(f"Unknown config key: {key}.{sub_key}")
                    pending[attr] = self._cast(attr, sub_value)
            elif key in self.DEFAULTS:
                pending[key] = self._cast(key, value)
            else:
                raise ValidationError(f"Unknown config key: {key}")

        for attr, value in pending.items():
            setattr(self, attr, value)
            updated.append(f"{attr}={value}")

    def _cast(self, attr: str, value: Any):
        expected = type(self.DEFAULTS[attr])
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"Config '{attr}' must be a number, got {value!r}")
        if value < 0:
            raise ValidationError(f"Config '{attr}' must not be negative")
        if expected is int:
            if int(value) != value:
                raise ValidationError(f"Config '{attr}' must be an integer")
            return int(value)
        return float(value)

    def get_summary(self) -> str:
        """配置摘要（configure 工具的返回文本）"""
        lines = ["Current settings:"]
        for group, mapping in _GROUPS.items():
            values = ", ".join(f"{key}={getattr(self, attr)}" for key, attr in mapping.items())
            lines.append(f"  {group}: {values}")
        return "\n".join(lines)
