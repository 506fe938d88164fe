"""后端适配器"""
from mobile_automation.core.backends.base import SWIPE_DIRECTIONS, CapabilityAdapter

__all__ = ["CapabilityAdapter", "SWIPE_DIRECTIONS"]
