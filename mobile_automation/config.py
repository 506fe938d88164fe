#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mobile Automation 配置系统

功能：
1. 平台选择（默认目标平台、设备ID）
2. 平台开关（Android / iOS）
3. 截图默认参数
4. 日志配置

所有配置都从环境变量读取，启动时会自动加载项目根目录的 .env 文件。
运行时可调整的策略参数见 core/dynamic_config.py。
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# 加载 .env（不覆盖已有环境变量）
load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_bool(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Mobile Automation 配置类"""

    # ==================== 平台支持 ====================
    # 默认目标平台（"android" / "ios" / "desktop" / "aurora"）
    # 兼容两种环境变量名：MOBILE_PLATFORM（新）和 DEFAULT_PLATFORM（旧）
    DEFAULT_PLATFORM: str = os.getenv(
        "MOBILE_PLATFORM",
        os.getenv("DEFAULT_PLATFORM", "android")
    ).lower()

    # Android支持（默认启用）
    ANDROID_SUPPORT_ENABLED: bool = _env_bool("ANDROID_SUPPORT_ENABLED")

    # iOS支持开关（默认启用，需要安装 ios 依赖）
    IOS_SUPPORT_ENABLED: bool = _env_bool("IOS_SUPPORT_ENABLED")

    # ==================== 设备管理 ====================
    # 默认设备ID（"auto"=自动选择第一个）
    DEFAULT_DEVICE_ID: str = os.getenv("MOBILE_DEVICE_ID", "auto")

    # WDA 服务地址（iOS），为空时通过 USB 连接
    WDA_URL: Optional[str] = os.getenv("WDA_URL") or None

    # ==================== 截图 ====================
    SCREENSHOT_MAX_WIDTH: int = int(os.getenv("SCREENSHOT_MAX_WIDTH", "800"))
    SCREENSHOT_MAX_HEIGHT: int = int(os.getenv("SCREENSHOT_MAX_HEIGHT", "1400"))
    SCREENSHOT_QUALITY: int = int(os.getenv("SCREENSHOT_QUALITY", "70"))

    # ==================== 日志 ====================
    # 日志级别
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # 日志文件（可选，为空只输出到 stderr）
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    @classmethod
    def default_device_id(cls) -> Optional[str]:
        """获取默认设备ID（auto 返回 None）"""
        if cls.DEFAULT_DEVICE_ID in ("", "auto"):
            return None
        return cls.DEFAULT_DEVICE_ID

    @classmethod
    def is_platform_enabled(cls, platform: str) -> bool:
        """检查平台是否启用"""
        if platform == "android":
            return cls.ANDROID_SUPPORT_ENABLED
        if platform == "ios":
            return cls.IOS_SUPPORT_ENABLED
        return True

    @classmethod
    def get_summary(cls) -> dict:
        """获取配置摘要"""
        return {
            "platform_support": {
                "default": cls.DEFAULT_PLATFORM,
                "android": cls.ANDROID_SUPPORT_ENABLED,
                "ios": cls.IOS_SUPPORT_ENABLED,
            },
            "device": {
                "default_device_id": cls.DEFAULT_DEVICE_ID,
                "wda_url": cls.WDA_URL or "usb",
            },
            "screenshot": {
                "max_width": cls.SCREENSHOT_MAX_WIDTH,
                "max_height": cls.SCREENSHOT_MAX_HEIGHT,
                "quality": cls.SCREENSHOT_QUALITY,
            },
            "logging": {
                "level": cls.LOG_LEVEL,
                "file": cls.LOG_FILE,
            },
        }
