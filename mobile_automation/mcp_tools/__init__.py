"""
MCP Server 入口
"""
