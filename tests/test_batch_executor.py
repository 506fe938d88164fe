#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
批量执行测试
"""
import pytest

from mobile_automation.core.batch_executor import BatchEntry, BatchExecutor, BatchReport
from mobile_automation.core.registry import ToolDefinition
from mobile_automation.errors import BackendUnavailable, ToolError


@pytest.fixture
def batch_ctx(ctx):
    """注册一个总是成功和一个总是失败的工具"""
    calls = []

    async def ok_tool(args, _ctx, depth):
        calls.append("ok_tool")
        return "fine"

    async def failing_tool(args, _ctx, depth):
        calls.append("failing_tool")
        raise ToolError("boom")

    ctx.registry.register([
        ToolDefinition(name="ok_tool", description="ok", handler=ok_tool),
        ToolDefinition(name="failing_tool", description="fail", handler=failing_tool),
    ])
    ctx.calls = calls
    return ctx


COMMANDS = [{"name": "ok_tool"}, {"name": "failing_tool"}, {"name": "ok_tool"}]


class TestBatchExecutor:

    @pytest.mark.asyncio
    async def test_stop_on_error(self, batch_ctx):
        report = await BatchExecutor(batch_ctx).run(COMMANDS, stop_on_error=True)
        assert len(report.entries) == 2
        assert batch_ctx.calls == ["ok_tool", "failing_tool"]
        assert report.render() == (
            "Batch: 2/3 executed, 1 failed\n\n"
            "1. ok_tool: OK - fine\n"
            "2. failing_tool: ERROR - boom"
        )

    @pytest.mark.asyncio
    async def test_continue_on_error(self, batch_ctx):
        report = await BatchExecutor(batch_ctx).run(COMMANDS, stop_on_error=False)
        assert len(report.entries) == 3
        assert report.failed == 1
        assert report.render().startswith("Batch: 3/3 executed, 1 failed")

    @pytest.mark.asyncio
    async def test_all_ok(self, batch_ctx):
        report = await BatchExecutor(batch_ctx).run([{"name": "ok_tool"}, {"name": "ok_tool"}])
        assert report.render().splitlines()[0] == "Batch: 2 commands OK"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_an_entry(self, batch_ctx):
        report = await BatchExecutor(batch_ctx).run([{"name": "nope"}, {"name": "ok_tool"}], stop_on_error=False)
        assert report.entries[0] == BatchEntry(name="nope", success=False, result="Unknown tool: nope")
        assert report.entries[1].success

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_an_entry(self, batch_ctx, adapter):
        report = await BatchExecutor(batch_ctx).run([{"name": "tap", "arguments": {"x": "ten"}}])
        assert not report.entries[0].success
        assert "Invalid arguments for tap" in report.entries[0].result

    @pytest.mark.asyncio
    async def test_fatal_error_unwinds(self, batch_ctx, adapter):
        adapter.failures["tap"] = BackendUnavailable("no device")
        with pytest.raises(BackendUnavailable):
            await BatchExecutor(batch_ctx).run(
                [{"name": "tap", "arguments": {"x": 1, "y": 1}}, {"name": "ok_tool"}],
                stop_on_error=False,
            )
        assert batch_ctx.calls == []


class TestBatchTool:

    @pytest.mark.asyncio
    async def test_batch_commands_tool(self, ctx, adapter):
        result = await ctx.dispatch("batch_commands", {"commands": [
            {"name": "tap", "arguments": {"x": 1, "y": 2}},
            {"name": "input_text", "arguments": {"text": "hello"}},
            {"name": "press_key", "arguments": {"key": "ENTER"}},
        ]})
        assert result.text == (
            "Batch: 3 commands OK\n\n"
            "1. tap: OK - Tapped at (1, 2)\n"
            '2. input_text: OK - Entered text: "hello"\n'
            "3. press_key: OK - Pressed key: ENTER"
        )
        assert [c[0] for c in adapter.calls] == ["tap", "input_text", "press_key"]

    @pytest.mark.asyncio
    async def test_stop_on_error_defaults_true(self, ctx, adapter):
        result = await ctx.dispatch("batch_commands", {"commands": [
            {"name": "find_and_tap", "arguments": {"description": "zzz"}},
            {"name": "tap", "arguments": {"x": 1, "y": 2}},
        ]})
        assert result.text.startswith("Batch: 1/2 executed, 1 failed")
        assert adapter.calls_to("tap") == []

    @pytest.mark.asyncio
    async def test_empty_batch(self, ctx):
        result = await ctx.dispatch("batch_commands", {"commands": []})
        assert result.text == "No commands provided"

    def test_report_counts(self):
        report = BatchReport(entries=[BatchEntry("a", True, "x"), BatchEntry("b", False, "y")], total=5)
        assert report.failed == 1
