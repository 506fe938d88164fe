#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具处理函数测试（通过分发器调用，后端为 FakeAdapter）
"""
import pytest

from conftest import hierarchy, node, png
from mobile_automation.core.backends.base import CapabilityAdapter
from mobile_automation.errors import AssertionFailed, ElementNotFound, ToolError, ValidationError


class TestDeviceTools:

    @pytest.mark.asyncio
    async def test_list_devices(self, ctx):
        ctx.device_manager.register_adapter("ios", lambda device_id: None, lambda: [])
        result = await ctx.dispatch("list_devices", {})
        assert result.text == "Connected devices:\n\nAndroid:\n  - emulator-5554 (Pixel 7, device) [ACTIVE]"

    @pytest.mark.asyncio
    async def test_no_devices(self, ctx):
        ctx.device_manager.register_adapter("android", lambda device_id: None, lambda: [])
        result = await ctx.dispatch("list_devices", {"platform": "android"})
        assert result.text.startswith("No devices connected.")

    @pytest.mark.asyncio
    async def test_target_switching(self, ctx):
        result = await ctx.dispatch("get_target", {})
        assert result.text == "Current target: android (not connected, device=emulator-5554)"

        await ctx.dispatch("tap", {"x": 1, "y": 1})
        result = await ctx.dispatch("get_target", {})
        assert result.text == "Current target: android (connected, device=emulator-5554)"

        result = await ctx.dispatch("set_target", {"target": "desktop"})
        assert result.text == "Target set to: desktop"
        result = await ctx.dispatch("get_target", {})
        assert result.text == "Current target: desktop (no backend)"

    @pytest.mark.asyncio
    async def test_set_target_rejects_unknown_platform(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("set_target", {"target": "windows"})

    @pytest.mark.asyncio
    async def test_set_device(self, ctx):
        result = await ctx.dispatch("set_device", {"deviceId": "R58M123"})
        assert result.text == "Device set to: R58M123 (android)"
        assert ctx.target_key() == "android:R58M123"

    @pytest.mark.asyncio
    async def test_platform_without_backend(self, ctx):
        with pytest.raises(ToolError) as exc:
            await ctx.dispatch("tap", {"x": 1, "y": 1, "platform": "aurora"})
        assert exc.value.fatal
        assert exc.value.message == "No backend available for platform: aurora"


class TestScreenshotTools:

    @pytest.mark.asyncio
    async def test_compressed_by_default(self, ctx):
        result = await ctx.dispatch("screenshot", {})
        assert result.image.mime_type == "image/jpeg"
        assert result.text is None

    @pytest.mark.asyncio
    async def test_uncompressed(self, ctx):
        result = await ctx.dispatch("take_screenshot", {"compress": False})
        assert result.image.mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_diff_tiers(self, ctx, adapter):
        base = png()
        adapter.screenshots = [
            base,
            base,
            png(box=(10, 20, 60, 80)),
            png(color=(0, 0, 255)),
        ]

        first = await ctx.dispatch("screenshot", {"diff": True})
        assert first.text == "First screenshot (no previous to diff against)"
        assert first.image is not None

        unchanged = await ctx.dispatch("screenshot", {"diff": True})
        assert unchanged.text == "Screen unchanged (0.0% diff)"
        assert unchanged.image is None

        region = await ctx.dispatch("screenshot", {"diff": True})
        assert region.text == "Changed region (15.0% diff) at (10, 20) 50x60"
        assert region.image is not None

        full = await ctx.dispatch("screenshot", {"diff": True})
        assert full.text == "Screen changed significantly (100.0% diff) - full screenshot"

    @pytest.mark.asyncio
    async def test_diff_tiers_follow_settings(self, ctx, adapter):
        adapter.screenshots = [png(), png(box=(10, 20, 60, 80))]
        ctx.settings.update({"thresholds": {"diff_unchanged_percent": 20}})
        await ctx.dispatch("screenshot", {"diff": True})
        result = await ctx.dispatch("screenshot", {"diff": True})
        assert result.text == "Screen unchanged (15.0% diff)"

    @pytest.mark.asyncio
    async def test_last_screenshot_cached_per_target(self, ctx, adapter):
        await ctx.dispatch("screenshot", {"diff": True})
        await ctx.dispatch("set_device", {"deviceId": "other"})
        result = await ctx.dispatch("screenshot", {"diff": True})
        assert result.text == "First screenshot (no previous to diff against)"

    @pytest.mark.asyncio
    async def test_wait_stable(self, ctx, adapter):
        adapter.screenshots = [png(box=(0, 0, 50, 50)), png(), png()]
        result = await ctx.dispatch("screenshot", {"waitStable": True})
        assert result.text is None
        assert len(adapter.calls_to("screenshot_bytes")) == 3

    @pytest.mark.asyncio
    async def test_wait_stable_gives_up(self, ctx, adapter):
        adapter.screenshots = [png(color=(i * 40, 0, 0)) for i in range(6)]
        result = await ctx.dispatch("screenshot", {"waitStable": True})
        assert result.text == "Screen not stable after 5 captures; using latest"
        assert result.image is not None

    @pytest.mark.asyncio
    async def test_annotate_caches_elements_for_index_tap(self, ctx, adapter):
        result = await ctx.dispatch("annotate_screenshot", {})
        assert result.text.splitlines()[0] == "Annotated 4 elements (tap with index):"
        assert "  2: [clickable] Login @ (540, 650)" in result.text

        await ctx.dispatch("tap", {"index": 2})
        assert adapter.calls_to("tap") == [("tap", 540, 650)]
        assert len(adapter.calls_to("get_ui_hierarchy")) == 1


class TestInteractionTools:

    @pytest.mark.asyncio
    async def test_tap_by_text(self, ctx, adapter):
        result = await ctx.dispatch("tap", {"text": "login"})
        assert result.text == "Tapped at (540, 650)"

    @pytest.mark.asyncio
    async def test_tap_by_resource_id(self, ctx, adapter):
        await ctx.dispatch("tap", {"resourceId": "username"})
        assert adapter.calls_to("tap") == [("tap", 540, 450)]

    @pytest.mark.asyncio
    async def test_tap_by_label(self, ctx, adapter):
        await ctx.dispatch("tap", {"label": "Forgot"})
        assert adapter.calls_to("tap") == [("tap", 270, 825)]

    @pytest.mark.asyncio
    async def test_tap_prefers_clickable_match(self, ctx, adapter):
        adapter.hierarchies = [hierarchy(
            node(text="Next", bounds=(0, 0, 100, 100)),
            node(text="Next", cls="android.widget.Button", clickable=True, bounds=(0, 200, 100, 300)),
        )]
        await ctx.dispatch("tap", {"text": "Next"})
        assert adapter.calls_to("tap") == [("tap", 50, 250)]

    @pytest.mark.asyncio
    async def test_tap_index_captures_when_cache_empty(self, ctx, adapter):
        await ctx.dispatch("tap", {"index": 1})
        assert adapter.calls_to("tap") == [("tap", 540, 450)]
        assert len(adapter.calls_to("get_ui_hierarchy")) == 1

    @pytest.mark.asyncio
    async def test_tap_unknown_index(self, ctx):
        with pytest.raises(ElementNotFound) as exc:
            await ctx.dispatch("tap", {"index": 99})
        assert exc.value.message == "Element with index 99 not found. Run get_ui first."

    @pytest.mark.asyncio
    async def test_tap_missing_element(self, ctx, adapter):
        with pytest.raises(ElementNotFound) as exc:
            await ctx.dispatch("tap", {"text": "Submit"})
        assert exc.value.message == "Element not found: Submit"
        assert adapter.calls_to("tap") == []

    @pytest.mark.asyncio
    async def test_tap_without_target(self, ctx):
        with pytest.raises(ValidationError) as exc:
            await ctx.dispatch("tap", {"x": 5})
        assert exc.value.message == "Please provide x,y coordinates, text, resourceId, label, or index"

    @pytest.mark.asyncio
    async def test_long_press(self, ctx, adapter):
        result = await ctx.dispatch("long_press", {"text": "Login"})
        assert result.text == "Long pressed at (540, 650) for 1000ms"
        result = await ctx.dispatch("long_press", {"x": 1, "y": 2, "duration": 2500})
        assert adapter.calls_to("long_press") == [("long_press", 540, 650, 1000), ("long_press", 1, 2, 2500)]

    @pytest.mark.asyncio
    async def test_long_press_without_target(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("long_press", {})

    @pytest.mark.asyncio
    async def test_swipe_by_coordinates(self, ctx, adapter):
        result = await ctx.dispatch("swipe", {"x1": 1, "y1": 2, "x2": 3, "y2": 4})
        assert result.text == "Swiped from (1, 2) to (3, 4)"
        assert adapter.calls_to("swipe") == [("swipe", 1, 2, 3, 4, 300)]

    @pytest.mark.asyncio
    async def test_swipe_requires_direction_or_points(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("swipe", {"x1": 1, "y1": 2})
        with pytest.raises(ValidationError):
            await ctx.dispatch("swipe", {"direction": "diagonal"})

    @pytest.mark.asyncio
    async def test_input_and_keys(self, ctx, adapter):
        result = await ctx.dispatch("type_text", {"text": "hello"})
        assert result.text == 'Entered text: "hello"'
        result = await ctx.dispatch("press_key", {"key": "BACK"})
        assert result.text == "Pressed key: BACK"
        assert adapter.calls == [("input_text", "hello"), ("press_key", "BACK")]

    @pytest.mark.asyncio
    async def test_input_text_requires_text(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("input_text", {})


class TestUITools:

    @pytest.mark.asyncio
    async def test_get_ui(self, ctx):
        result = await ctx.dispatch("get_ui_hierarchy", {})
        lines = result.text.splitlines()
        assert lines[0] == "UI elements (4 of 4):"
        assert lines[3] == '[2] button "Login" (id: com.example.app:id/login_button) @ (540, 650) [clickable]'

    @pytest.mark.asyncio
    async def test_find_element(self, ctx):
        result = await ctx.dispatch("find_element", {"text": "password"})
        assert result.text == 'Found 1 element(s):\n[3] text "Forgot password?" @ (270, 825)'

    @pytest.mark.asyncio
    async def test_find_element_limits_output(self, ctx, adapter):
        adapter.hierarchies = [hierarchy(*[node(text=f"Row {i}", bounds=(0, i * 10, 100, i * 10 + 10)) for i in range(25)])]
        result = await ctx.dispatch("find_element", {"text": "row"})
        lines = result.text.splitlines()
        assert lines[0] == "Found 25 element(s):"
        assert len(lines) == 22
        assert lines[-1] == "..."

    @pytest.mark.asyncio
    async def test_find_element_errors(self, ctx):
        with pytest.raises(ElementNotFound):
            await ctx.dispatch("find_element", {"text": "Nope"})
        with pytest.raises(ValidationError):
            await ctx.dispatch("find_element", {})

    @pytest.mark.asyncio
    async def test_find_and_tap(self, ctx, adapter):
        result = await ctx.dispatch("find_and_tap", {"description": "login button"})
        assert result.text == (
            'Tapped "login button" (100% confidence)\n'
            'Match: exact resource-id match "com.example.app:id/login_button", clickable\n'
            "Coordinates: (540, 650)"
        )
        assert adapter.calls_to("tap") == [("tap", 540, 650)]

    @pytest.mark.asyncio
    async def test_find_and_tap_low_confidence(self, ctx, adapter):
        with pytest.raises(ElementNotFound) as exc:
            await ctx.dispatch("find_and_tap", {"description": "password reset help"})
        assert exc.value.message.startswith("Best match has low confidence (17%)")
        assert adapter.calls_to("tap") == []

        await ctx.dispatch("find_and_tap", {"description": "password reset help", "minConfidence": 10})
        assert adapter.calls_to("tap") == [("tap", 270, 825)]

    @pytest.mark.asyncio
    async def test_analyze_screen(self, ctx):
        result = await ctx.dispatch("analyze_screen", {})
        lines = result.text.splitlines()
        assert lines[0] == "Activity: com.example.app/.MainActivity"
        assert lines[1] == "Title: Welcome"
        assert "Buttons (1):" in lines
        assert "Inputs (1):" in lines
        assert lines[-1] == "Total elements: 4"

    @pytest.mark.asyncio
    async def test_analyze_screen_without_activity(self, ctx, adapter):
        adapter.failures["get_current_activity"] = ToolError("dumpsys failed")
        result = await ctx.dispatch("analyze_screen", {})
        assert result.text.startswith("Title: Welcome")

    @pytest.mark.asyncio
    async def test_wait_for_element(self, ctx):
        result = await ctx.dispatch("wait_for_element", {"text": "Login"})
        assert result.text.startswith("Element found after ")
        assert '"Login"' in result.text

    @pytest.mark.asyncio
    async def test_wait_for_element_appears_later(self, ctx, adapter):
        adapter.hierarchies = [hierarchy(), hierarchy(), hierarchy(node(text="Ready"))]
        result = await ctx.dispatch("wait_for_element", {"text": "Ready", "timeout": 1000, "interval": 1})
        assert result.text.startswith("Element found after ")
        assert len(adapter.calls_to("get_ui_hierarchy")) == 3

    @pytest.mark.asyncio
    async def test_wait_for_element_timeout(self, ctx):
        with pytest.raises(ElementNotFound) as exc:
            await ctx.dispatch("wait_for_element", {"text": "Nope", "timeout": 0, "interval": 1})
        assert exc.value.message == "Timeout after 0ms: element not found (text=Nope, resourceId=, className=)"

    @pytest.mark.asyncio
    async def test_wait_for_element_requires_criteria(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("wait_for_element", {"timeout": 10})

    @pytest.mark.asyncio
    async def test_assertions(self, ctx):
        result = await ctx.dispatch("assert_visible", {"text": "Login"})
        assert result.text.startswith("PASS: Element visible - [2] button \"Login\"")

        result = await ctx.dispatch("assert_not_exists", {"text": "Nope"})
        assert result.text == "PASS: Element not present (text=Nope, resourceId=)"

        with pytest.raises(AssertionFailed) as exc:
            await ctx.dispatch("assert_not_exists", {"resourceId": "login_button"})
        assert exc.value.message.startswith("FAIL: Element exists - [2]")

        with pytest.raises(AssertionFailed):
            await ctx.dispatch("assert_visible", {"text": "Nope"})

    @pytest.mark.asyncio
    async def test_assertion_requires_criteria(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("assert_visible", {})


class TestAppAndSystemTools:

    @pytest.mark.asyncio
    async def test_app_lifecycle(self, ctx, adapter):
        assert (await ctx.dispatch("start_app", {"package": "com.x"})).text == "Launched: com.x"
        assert (await ctx.dispatch("terminate_app", {"package": "com.x"})).text == "Stopped: com.x"
        assert (await ctx.dispatch("install_app", {"path": "/tmp/x.apk"})).text == "Installed: /tmp/x.apk"
        assert adapter.calls == [
            ("launch_app", "com.x"),
            ("stop_app", "com.x"),
            ("install_app", "/tmp/x.apk"),
        ]

    @pytest.mark.asyncio
    async def test_launch_requires_package(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("launch_app", {})

    @pytest.mark.asyncio
    async def test_current_activity(self, ctx):
        result = await ctx.dispatch("get_current_activity", {})
        assert result.text == "Current activity: com.example.app/.MainActivity"

    @pytest.mark.asyncio
    async def test_shell(self, ctx, adapter):
        assert (await ctx.dispatch("shell", {"command": "true"})).text == "(no output)"
        adapter.shell_output = "package:com.x"
        assert (await ctx.dispatch("shell", {"command": "pm list packages"})).text == "package:com.x"

    @pytest.mark.asyncio
    async def test_wait(self, ctx):
        assert (await ctx.dispatch("sleep", {"ms": 1})).text == "Waited 1ms"

    @pytest.mark.asyncio
    async def test_open_url(self, ctx, adapter):
        result = await ctx.dispatch("open_url", {"url": "https://example.com"})
        assert result.text == "Opened URL: https://example.com"
        assert adapter.calls_to("open_url") == [("open_url", "https://example.com")]


class TestConfigureTool:

    @pytest.mark.asyncio
    async def test_show_settings(self, ctx):
        result = await ctx.dispatch("configure", {})
        assert result.text.startswith("Current settings:")
        assert "retry_strategy: max_retries=3" in result.text

    @pytest.mark.asyncio
    async def test_update(self, ctx):
        result = await ctx.dispatch("configure", {"settings": {"retry_strategy": {"max_retries": 5}}})
        assert result.text.splitlines()[0] == "Updated: max_retries=5"
        assert ctx.settings.max_retries == 5

    @pytest.mark.asyncio
    async def test_invalid_update_changes_nothing(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("configure", {"settings": {"max_retries": 5, "bogus": 1}})
        assert ctx.settings.max_retries == 3

        with pytest.raises(ValidationError):
            await ctx.dispatch("configure", {"settings": {"thresholds": {"crop_padding": -1}}})

    @pytest.mark.asyncio
    async def test_reset(self, ctx):
        result = await ctx.dispatch("configure", {"reset": True})
        assert result.text.splitlines()[0] == "All settings reset to defaults"
        assert ctx.settings.hint_settle_delay == 0.15


class TestLogAndDeviceInfoTools:

    @pytest.mark.asyncio
    async def test_get_logs(self, ctx, adapter):
        assert (await ctx.dispatch("get_logs", {})).text == "(no logs)"
        adapter.logs = "E/Crash: boom\n"
        result = await ctx.dispatch("get_logs", {"level": "E", "lines": 20, "package": "com.x"})
        assert result.text == "E/Crash: boom"
        assert adapter.calls_to("get_logs")[-1] == ("get_logs", "E", None, 20, "com.x")

    @pytest.mark.asyncio
    async def test_get_logs_rejects_unknown_level(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("get_logs", {"level": "X"})

    @pytest.mark.asyncio
    async def test_clear_logs_and_system_info(self, ctx, adapter):
        assert (await ctx.dispatch("clear_logs", {})).text == "Logs cleared"
        result = await ctx.dispatch("get_system_info", {})
        assert result.text.startswith("Battery: 85%")

    @pytest.mark.asyncio
    async def test_list_apps(self, ctx):
        result = await ctx.dispatch("list_apps", {})
        assert result.text.splitlines()[0] == "Installed packages (3):"
        result = await ctx.dispatch("list_apps", {"filter": "EXAMPLE"})
        assert result.text == "Installed packages (2):\ncom.example.app\ncom.example.shop"
        result = await ctx.dispatch("list_apps", {"filter": "zzz"})
        assert result.text == "No installed packages matching 'zzz'"


class TestPermissionTools:

    @pytest.mark.asyncio
    async def test_grant_and_revoke(self, ctx, adapter):
        args = {"package": "com.x", "permission": "android.permission.CAMERA"}
        assert (await ctx.dispatch("grant_permission", args)).text == "Granted android.permission.CAMERA to com.x"
        assert (await ctx.dispatch("revoke_permission", args)).text == "Revoked android.permission.CAMERA from com.x"
        assert adapter.calls == [
            ("grant_permission", "com.x", "android.permission.CAMERA"),
            ("revoke_permission", "com.x", "android.permission.CAMERA"),
        ]

    @pytest.mark.asyncio
    async def test_grant_requires_permission(self, ctx):
        with pytest.raises(ValidationError):
            await ctx.dispatch("grant_permission", {"package": "com.x"})

    @pytest.mark.asyncio
    async def test_reset(self, ctx, adapter):
        result = await ctx.dispatch("reset_permissions", {"package": "com.x"})
        assert result.text == "No runtime permissions granted for com.x"
        adapter.granted = ["android.permission.CAMERA", "android.permission.RECORD_AUDIO"]
        result = await ctx.dispatch("reset_permissions", {"package": "com.x"})
        assert result.text == (
            "Reset 2 permission(s) for com.x: android.permission.CAMERA, android.permission.RECORD_AUDIO"
        )

    @pytest.mark.asyncio
    async def test_unsupported_backend(self, ctx):
        ctx.device_manager.register_adapter("desktop", _BareAdapter)
        with pytest.raises(ToolError, match="grant_permission is not supported on desktop"):
            await ctx.dispatch("grant_permission", {
                "package": "com.x", "permission": "camera", "platform": "desktop",
            })


class TestClipboardTools:

    @pytest.mark.asyncio
    async def test_select_and_copy(self, ctx, adapter):
        assert (await ctx.dispatch("select_text", {})).text == "Selected all text in focused input field"
        assert (await ctx.dispatch("copy_text", {})).text == "Selected all text and copied to clipboard"
        assert adapter.calls == [("select_all_text",), ("copy_text",)]

    @pytest.mark.asyncio
    async def test_paste_into_focused_field(self, ctx, adapter):
        result = await ctx.dispatch("paste_text", {})
        assert result.text == "Pasted clipboard content into focused field"
        assert adapter.calls == [("paste_text",)]

    @pytest.mark.asyncio
    async def test_paste_taps_field_first(self, ctx, adapter):
        await ctx.dispatch("paste_text", {"fieldId": "com.example.app:id/username"})
        assert adapter.calls_to("tap") == [("tap", 540, 450)]
        assert adapter.calls[-1] == ("paste_text",)

    @pytest.mark.asyncio
    async def test_paste_field_not_found(self, ctx, adapter):
        with pytest.raises(ElementNotFound, match="Field not found: Nope"):
            await ctx.dispatch("paste_text", {"fieldText": "Nope"})
        assert not adapter.calls_to("paste_text")

    @pytest.mark.asyncio
    async def test_get_clipboard(self, ctx, adapter):
        assert (await ctx.dispatch("get_clipboard_android", {})).text == "Clipboard: hello"
        adapter.clipboard = ""
        assert (await ctx.dispatch("get_clipboard_android", {})).text == "Clipboard is empty"


class _BareAdapter(CapabilityAdapter):
    """只实现必需方法的后端，可选能力全部走默认实现"""

    platform = "desktop"

    async def tap(self, x, y):
        pass

    async def long_press(self, x, y, duration_ms=1000):
        pass

    async def swipe(self, x1, y1, x2, y2, duration_ms=300):
        pass

    async def swipe_direction(self, direction):
        pass

    async def input_text(self, text):
        pass

    async def press_key(self, key):
        pass

    async def get_ui_hierarchy(self):
        return {}

    async def screenshot_bytes(self):
        return png()

    async def shell(self, command):
        return ""

    async def launch_app(self, package):
        pass

    async def stop_app(self, package):
        pass

    async def install_app(self, path):
        pass
