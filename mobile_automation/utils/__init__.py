"""
Utils Package
"""
from mobile_automation.utils.logger import get_logger, configure_logging
from mobile_automation.utils.hierarchy_parser import HierarchyParser
from mobile_automation.utils.element_formatter import ElementFormatter

__all__ = ['get_logger', 'configure_logging', 'HierarchyParser', 'ElementFormatter']
