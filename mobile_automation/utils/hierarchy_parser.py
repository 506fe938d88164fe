#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
层级结构解析器 - 把各平台的原始层级结构统一解析成 Element 列表

支持：
1. Android: UIAutomator2 dump 出来的 XML
2. iOS: WDA source(format='json') 返回的 JSON 树
3. Desktop: 桌面伴随程序返回的无障碍树（JSON）

每次解析都会生成全新的 Element 列表，index 按文档顺序从 0 开始编号。
"""
import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Union

from mobile_automation.errors import ToolError
from mobile_automation.models import Bounds, Element

_BOUNDS_RE = re.compile(r'\[(-?\d+),(-?\d+)\]\[(-?\d+),(-?\d+)\]')

# iOS / Desktop 中可点击的控件类型关键字
_IOS_CLICKABLE_TYPES = ("Button", "Link", "Cell")
_DESKTOP_CLICKABLE_ROLES = (
    "AXButton", "AXLink", "AXMenuItem", "AXMenuBarItem", "AXCheckBox",
    "AXRadioButton", "AXPopUpButton", "AXCell", "AXTab",
)


class HierarchyParser:
    """
    层级结构解析器

    用法:
        parser = HierarchyParser()
        elements = parser.parse("android", xml_string)
    """

    def parse(self, platform: str, raw: Union[str, Dict[str, Any]]) -> List[Element]:
        """
        按平台解析原始层级结构

        Args:
            platform: android / ios / desktop / aurora
            raw: 后端返回的原始数据（XML 字符串、JSON 字符串或已解析的字典）

        Returns:
            Element 列表（文档顺序）
        """
        if platform in ("android", "aurora"):
            return self.parse_android(raw)
        if platform == "ios":
            return self.parse_ios(raw)
        if platform == "desktop":
            return self.parse_desktop(raw)
        raise ToolError(f"No hierarchy parser for platform: {platform}")

    # ==================== Android ====================

    def parse_android(self, xml_string: Union[str, bytes]) -> List[Element]:
        """
        解析 UIAutomator XML

        Args:
            xml_string: XML格式的字符串

        Returns:
            元素列表
        """
        if isinstance(xml_string, bytes):
            xml_string = xml_string.decode('utf-8', errors='replace')
        if not xml_string or not xml_string.strip():
            return []

        try:
            root = ET.fromstring(xml_string)
        except ET.ParseError as e:
            raise ToolError(f"Failed to parse UI hierarchy XML: {e}")

        elements: List[Element] = []
        for node in root.iter('node'):
            bounds = self.parse_bounds(node.get('bounds', ''))
            if bounds is None:
                continue
            elements.append(Element(
                index=len(elements),
                bounds=bounds,
                resource_id=node.get('resource-id', ''),
                class_name=node.get('class', ''),
                package_name=node.get('package', ''),
                text=node.get('text', '').strip(),
                content_desc=node.get('content-desc', '').strip(),
                checkable=_flag(node.get('checkable')),
                checked=_flag(node.get('checked')),
                clickable=_flag(node.get('clickable')),
                enabled=_flag(node.get('enabled'), default=True),
                focusable=_flag(node.get('focusable')),
                focused=_flag(node.get('focused')),
                scrollable=_flag(node.get('scrollable')),
                long_clickable=_flag(node.get('long-clickable')),
                password=_flag(node.get('password')),
                selected=_flag(node.get('selected')),
            ))
        return elements

    @staticmethod
    def parse_bounds(bounds_str: str) -> Optional[Bounds]:
        """
        解析bounds字符串

        Args:
            bounds_str: 格式如 "[100,200][300,400]"
        """
        match = _BOUNDS_RE.search(bounds_str or '')
        if not match:
            return None
        x1, y1, x2, y2 = map(int, match.groups())
        return Bounds(x1, y1, x2, y2)

    # ==================== iOS ====================

    def parse_ios(self, tree: Union[str, Dict[str, Any]]) -> List[Element]:
        """解析 WDA JSON 树（只保留有尺寸的节点）"""
        tree = _load_json(tree)
        elements: List[Element] = []
        self._walk_ios(tree, elements)
        return elements

    def _walk_ios(self, node: Dict[str, Any], elements: List[Element]):
        rect = node.get('rect')
        if rect:
            x = int(rect.get('x') or 0)
            y = int(rect.get('y') or 0)
            w = int(rect.get('width') or 0)
            h = int(rect.get('height') or 0)
            if w > 0 and h > 0:
                node_type = node.get('type') or ''
                enabled = _flag(node.get('isEnabled', node.get('enabled')), default=True)
                elements.append(Element(
                    index=len(elements),
                    bounds=Bounds(x, y, x + w, y + h),
                    resource_id=node.get('rawIdentifier') or node.get('identifier') or '',
                    class_name=node_type,
                    text=str(node.get('label') or node.get('value') or ''),
                    content_desc=str(node.get('name') or ''),
                    clickable=enabled and any(t in node_type for t in _IOS_CLICKABLE_TYPES),
                    enabled=enabled,
                    focusable=enabled,
                    scrollable='ScrollView' in node_type,
                    password='SecureTextField' in node_type,
                    selected=_flag(node.get('isSelected', node.get('selected'))),
                ))

        for child in node.get('children') or []:
            self._walk_ios(child, elements)

    # ==================== Desktop ====================

    def parse_desktop(self, tree: Union[str, Dict[str, Any]]) -> List[Element]:
        """解析桌面无障碍树（role/title/frame 结构）"""
        tree = _load_json(tree)
        elements: List[Element] = []
        roots = tree if isinstance(tree, list) else [tree]
        for root in roots:
            self._walk_desktop(root, elements)
        return elements

    def _walk_desktop(self, node: Dict[str, Any], elements: List[Element]):
        frame = node.get('frame') or {}
        w = int(frame.get('width') or 0)
        h = int(frame.get('height') or 0)
        if w > 0 and h > 0:
            x = int(frame.get('x') or 0)
            y = int(frame.get('y') or 0)
            role = node.get('role') or ''
            enabled = _flag(node.get('enabled'), default=True)
            elements.append(Element(
                index=len(elements),
                bounds=Bounds(x, y, x + w, y + h),
                resource_id=node.get('identifier') or '',
                class_name=role,
                text=str(node.get('title') or node.get('value') or ''),
                content_desc=str(node.get('description') or ''),
                clickable=enabled and role in _DESKTOP_CLICKABLE_ROLES,
                enabled=enabled,
                focusable=enabled,
                focused=_flag(node.get('focused')),
                scrollable=role == 'AXScrollArea',
                password=role == 'AXSecureTextField',
                selected=_flag(node.get('selected')),
            ))

        for child in node.get('children') or []:
            self._walk_desktop(child, elements)


def _flag(value: Any, default: bool = False) -> bool:
    """兼容 'true' / '1' / True 等多种布尔表示"""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('true', '1', 'yes')


def _load_json(raw: Union[str, bytes, Dict[str, Any], list]) -> Any:
    if isinstance(raw, (dict, list)):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8', errors='replace')
    if not raw or not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ToolError(f"Failed to parse UI hierarchy JSON: {e}")
