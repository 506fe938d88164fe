#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mobile Automation MCP Server - 统一入口

- 所有工具通过注册表分发（含隐藏别名、递归深度保护）
- 工具错误统一转换为 "Error: ..." 文本并标记为错误，不会泄露原始异常
- 日志只输出到 stderr（stdout 用于 MCP 协议）

使用方式：
    mobile-automation
    python -m mobile_automation.mcp_tools.mcp_server

配置 Cursor / Claude Desktop：
    {
        "mcpServers": {
            "mobile": {
                "command": "mobile-automation",
                "env": {
                    "MOBILE_PLATFORM": "android"
                }
            }
        }
    }
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple, Union

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import ImageContent, TextContent, Tool

from mobile_automation import __version__
from mobile_automation.config import Config
from mobile_automation.core import DeviceManager, DynamicConfig, ToolContext
from mobile_automation.errors import ToolError
from mobile_automation.models import ToolResult
from mobile_automation.tools import build_registry
from mobile_automation.utils.logger import configure_logging, get_logger

logger = get_logger('mcp_server')

Content = Union[TextContent, ImageContent]


class MobileAutomationServer:
    """MCP Server：工具列表 + 工具调用转换"""

    def __init__(self, ctx: Optional[ToolContext] = None):
        if ctx is None:
            ctx = ToolContext(build_registry(), DeviceManager(), DynamicConfig())
        self.ctx = ctx

    def get_tools(self) -> List[Tool]:
        """工具列表（别名不出现在这里）"""
        return [
            Tool(name=d.name, description=d.description, inputSchema=d.input_schema)
            for d in self.ctx.registry.list_tools()
        ]

    @staticmethod
    def to_content(result: ToolResult) -> List[Content]:
        """ToolResult -> MCP content（图片在前，说明文字在后）"""
        if result.image is None:
            return [TextContent(type="text", text=result.text or "")]
        content: List[Content] = [
            ImageContent(type="image", data=result.image.data, mimeType=result.image.mime_type),
        ]
        if result.text:
            content.append(TextContent(type="text", text=result.text))
        return content

    async def handle_tool_call(self, name: str, arguments: Optional[Dict[str, Any]]) -> Tuple[List[Content], bool]:
        """
        执行一次工具调用

        Returns:
            (content 列表, 是否为错误)
        """
        try:
            result = await self.ctx.dispatch(name, arguments or {})
        except ToolError as e:
            logger.info(f"工具 {name} 失败: {e.message}")
            return [TextContent(type="text", text=f"Error: {e.message}")], True
        except Exception as e:
            logger.exception(f"工具 {name} 执行异常")
            return [TextContent(type="text", text=f"Error: {e}")], True
        return self.to_content(result), False


async def async_main():
    """启动 MCP Server（异步版本）"""
    configure_logging(level=Config.LOG_LEVEL, log_file=Config.LOG_FILE)

    server = MobileAutomationServer()
    mcp_server = Server("mobile-automation")

    @mcp_server.list_tools()
    async def list_tools():
        return server.get_tools()

    @mcp_server.call_tool()
    async def call_tool(name: str, arguments: dict):
        content, is_error = await server.handle_tool_call(name, arguments)
        if is_error:
            # 由 SDK 转换为 isError=true 的结果
            raise ToolError(content[0].text)
        return content

    logger.info(f"Mobile Automation MCP Server {__version__} 启动中... [{len(server.get_tools())} 个工具]")
    logger.info(f"默认目标: {Config.DEFAULT_PLATFORM}")
    logger.debug(f"配置: {Config.get_summary()}")

    async with stdio_server() as (read_stream, write_stream):
        await mcp_server.run(read_stream, write_stream, mcp_server.create_initialization_options())


def main():
    """入口点函数（供 pip 安装后使用）"""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
