"""
Mobile Automation MCP - 移动端 UI 自动化编排

统一的工具接口（点击、滑动、输入、截图、UI 分析），
支持批量执行和多步 Flow，后端支持 Android（uiautomator2）和 iOS（WDA）。
"""

__version__ = "1.0.0"
