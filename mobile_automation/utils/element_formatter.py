#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
元素格式化器 - 将 Element 列表格式化成 AI 可理解的文本

功能：
1. 单个元素一行：[index] 类型 "文本" (id: ...) @ (x, y) [clickable]
2. UI 树：默认只显示可交互/有文本的元素，showAll 时显示全部
3. 屏幕分析报告（analyze_screen）
"""
from typing import List

from mobile_automation.models import Element, ScreenAnalysis

# 转换为更友好的名称
TYPE_MAPPING = {
    'Button': 'button',
    'ImageButton': 'button',
    'TextView': 'text',
    'EditText': 'textbox',
    'ImageView': 'image',
    'CheckBox': 'checkbox',
    'Switch': 'switch',
    'LinearLayout': 'container',
    'RelativeLayout': 'container',
    'FrameLayout': 'container',
    'RecyclerView': 'list',
    'ListView': 'list',
    'ScrollView': 'scrollable',
}

MAX_TEXT_LENGTH = 50


class ElementFormatter:
    """
    元素格式化器

    用法:
        formatter = ElementFormatter()
        text = formatter.format_ui_tree(elements)
    """

    def format_element(self, element: Element) -> str:
        """格式化单个元素"""
        short = element.short_class or 'element'
        parts = [f"[{element.index}]", TYPE_MAPPING.get(short, short)]

        text = element.text
        if text:
            if len(text) > MAX_TEXT_LENGTH:
                text = text[:MAX_TEXT_LENGTH - 3] + '...'
            parts.append(f'"{text}"')

        if element.resource_id:
            parts.append(f'(id: {element.resource_id})')

        if element.content_desc and element.content_desc != element.text:
            parts.append(f'(desc: {element.content_desc})')

        parts.append(f'@ ({element.center_x}, {element.center_y})')

        flags = []
        if element.clickable:
            flags.append('clickable')
        if element.scrollable:
            flags.append('scrollable')
        if element.checkable:
            flags.append('checked' if element.checked else 'unchecked')
        if element.password:
            flags.append('password')
        if not element.enabled:
            flags.append('disabled')
        if flags:
            parts.append('[' + ', '.join(flags) + ']')

        return ' '.join(parts)

    def format_ui_tree(self, elements: List[Element], show_all: bool = False) -> str:
        """
        格式化 UI 树

        Args:
            elements: 元素列表（来自 HierarchyParser）
            show_all: 是否显示全部元素（包括纯布局容器）

        Returns:
            格式化后的字符串
        """
        if not elements:
            return "No UI elements found"

        shown = elements if show_all else [e for e in elements if _is_interesting(e)]
        lines = [f"UI elements ({len(shown)} of {len(elements)}):"]
        lines.extend(self.format_element(e) for e in shown)
        return '\n'.join(lines)

    def format_screen_analysis(self, analysis: ScreenAnalysis) -> str:
        """格式化屏幕分析结果"""
        lines = []
        if analysis.activity:
            lines.append(f"Activity: {analysis.activity}")
        if analysis.title:
            lines.append(f"Title: {analysis.title}")
        if analysis.has_dialog:
            lines.append("Dialog: detected")

        if analysis.buttons:
            lines.append(f"\nButtons ({len(analysis.buttons)}):")
            for el in analysis.buttons:
                lines.append(f"  [{el.index}] {el.label} @ ({el.center_x}, {el.center_y})")

        if analysis.inputs:
            lines.append(f"\nInputs ({len(analysis.inputs)}):")
            for el in analysis.inputs:
                value = el.text or "(empty)"
                lines.append(f"  [{el.index}] {value} (id: {el.resource_id or '-'}) "
                             f"@ ({el.center_x}, {el.center_y})")

        if analysis.scrollables:
            lines.append(f"\nScrollable ({len(analysis.scrollables)}):")
            for el in analysis.scrollables:
                lines.append(f"  [{el.index}] {el.short_class} {el.width}x{el.height} "
                             f"@ ({el.center_x}, {el.center_y})")

        if analysis.texts:
            lines.append("\nTexts: " + " | ".join(analysis.texts))

        lines.append(f"\nTotal elements: {analysis.total}")
        return '\n'.join(lines).lstrip('\n')


def _is_interesting(element: Element) -> bool:
    return bool(
        element.clickable
        or element.scrollable
        or element.text
        or element.content_desc
        or element.checkable
    )
