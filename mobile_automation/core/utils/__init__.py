"""核心工具"""
from mobile_automation.core.utils.smart_wait import SmartWait

__all__ = ["SmartWait"]
