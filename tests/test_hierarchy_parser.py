#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
层级结构解析测试（Android XML / iOS WDA JSON / 桌面无障碍树）
"""
import json

import pytest

from conftest import LOGIN_SCREEN, hierarchy, node
from mobile_automation.errors import ToolError
from mobile_automation.utils.element_formatter import ElementFormatter
from mobile_automation.utils.hierarchy_parser import HierarchyParser


@pytest.fixture
def parser():
    return HierarchyParser()


class TestAndroid:

    def test_parse_login_screen(self, parser):
        elements = parser.parse("android", LOGIN_SCREEN)
        assert [e.index for e in elements] == [0, 1, 2, 3]

        login = elements[2]
        assert login.text == "Login"
        assert login.resource_id == "com.example.app:id/login_button"
        assert login.clickable is True
        assert (login.center_x, login.center_y) == (540, 650)
        assert login.short_class == "Button"

    def test_nodes_without_bounds_skipped(self, parser):
        xml = hierarchy(node(text="A"), node(text="B", bounds=(0, 0, 10, 10)))
        xml = xml.replace('bounds="[0,0][100,50]"', 'bounds=""')
        elements = parser.parse_android(xml)
        assert [e.text for e in elements] == ["B"]
        assert elements[0].index == 0

    def test_negative_bounds(self, parser):
        bounds = parser.parse_bounds("[-20,-5][100,50]")
        assert (bounds.x1, bounds.y1, bounds.x2, bounds.y2) == (-20, -5, 100, 50)

    def test_empty_dump(self, parser):
        assert parser.parse_android("") == []

    def test_broken_xml(self, parser):
        with pytest.raises(ToolError):
            parser.parse_android("<hierarchy><node")

    def test_aurora_uses_android_format(self, parser):
        assert len(parser.parse("aurora", LOGIN_SCREEN)) == 4

    def test_unknown_platform(self, parser):
        with pytest.raises(ToolError):
            parser.parse("windows", LOGIN_SCREEN)


class TestIOS:

    def test_parse_wda_tree(self, parser):
        tree = {
            "type": "XCUIElementTypeApplication",
            "rect": {"x": 0, "y": 0, "width": 390, "height": 844},
            "children": [
                {
                    "type": "XCUIElementTypeButton",
                    "label": "Continue",
                    "name": "continue",
                    "rawIdentifier": "continue_button",
                    "isEnabled": True,
                    "rect": {"x": 20, "y": 700, "width": 350, "height": 50},
                },
                {"type": "XCUIElementTypeOther", "rect": {"x": 0, "y": 0, "width": 0, "height": 0}},
                {
                    "type": "XCUIElementTypeSecureTextField",
                    "value": "",
                    "rect": {"x": 20, "y": 300, "width": 350, "height": 40},
                },
            ],
        }
        elements = parser.parse("ios", json.dumps(tree))
        assert len(elements) == 3

        button = elements[1]
        assert button.text == "Continue"
        assert button.content_desc == "continue"
        assert button.resource_id == "continue_button"
        assert button.clickable is True
        assert (button.center_x, button.center_y) == (195, 725)
        assert elements[2].password is True

    def test_invalid_json(self, parser):
        with pytest.raises(ToolError):
            parser.parse_ios("{not json")


class TestDesktop:

    def test_parse_accessibility_tree(self, parser):
        tree = {
            "role": "AXWindow",
            "title": "Preferences",
            "frame": {"x": 0, "y": 0, "width": 800, "height": 600},
            "children": [
                {"role": "AXButton", "title": "Apply", "frame": {"x": 700, "y": 550, "width": 80, "height": 30}},
                {"role": "AXScrollArea", "frame": {"x": 0, "y": 40, "width": 800, "height": 500}},
            ],
        }
        elements = parser.parse("desktop", tree)
        assert [e.class_name for e in elements] == ["AXWindow", "AXButton", "AXScrollArea"]
        assert elements[1].clickable is True
        assert elements[2].scrollable is True


class TestFormatter:

    def test_ui_tree_hides_layout_nodes(self, parser):
        xml = hierarchy(
            node(cls="android.widget.FrameLayout", bounds=(0, 0, 1080, 1920)),
            node(text="OK", cls="android.widget.Button", clickable=True, bounds=(0, 0, 200, 100)),
        )
        formatter = ElementFormatter()
        elements = parser.parse_android(xml)

        tree = formatter.format_ui_tree(elements)
        assert tree.splitlines() == [
            "UI elements (1 of 2):",
            '[1] button "OK" @ (100, 50) [clickable]',
        ]
        assert "(2 of 2)" in formatter.format_ui_tree(elements, show_all=True)

    def test_empty_tree(self):
        assert ElementFormatter().format_ui_tree([]) == "No UI elements found"
