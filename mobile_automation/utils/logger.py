#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
统一的日志管理器

MCP Server 通过 stdout 传输协议数据，所有日志都必须输出到 stderr，
避免直接使用 print 导致的 JSON 解析错误。
"""

import logging
import sys
from typing import Optional, Union

# 创建logger
logger = logging.getLogger('mobile_automation')

# 默认配置标志
_configured = False


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    enable_console: bool = True,
):
    """
    配置日志系统

    Args:
        level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL），支持字符串
        log_file: 日志文件路径（可选）
        enable_console: 是否输出到控制台（stderr）
    """
    global _configured
    if _configured:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 控制台处理器（输出到stderr，避免与MCP协议混淆）
    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # 文件处理器
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    获取logger实例

    Args:
        name: logger名称（可选），返回 mobile_automation.<name>

    Returns:
        logger实例
    """
    if name:
        return logging.getLogger(f'mobile_automation.{name}')
    return logger
