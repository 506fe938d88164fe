#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
公共数据模型

- Element: 统一的 UI 元素（由各平台层级结构解析而来，创建后不再修改）
- MatchResult / DiffResult: 元素模型的查找与对比结果
- Region / ScreenDiff: 截图差异结果
- ToolResult / ImagePayload: 工具返回值（文本或图片+文本）
- HintResult: 操作提示（区分"提示内容"和"提示获取失败"）
- ScreenAnalysis: 屏幕结构化分析
"""
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Bounds:
    """元素边框 [x1,y1][x2,y2]"""

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def center_x(self) -> int:
        return (self.x1 + self.x2) // 2

    @property
    def center_y(self) -> int:
        return (self.y1 + self.y2) // 2


@dataclass(frozen=True)
class Element:
    """
    统一 UI 元素

    index 只在同一次采集内唯一，跨采集没有意义。
    中心点、宽高都由 bounds 推导，保证始终一致。
    """

    index: int
    bounds: Bounds
    resource_id: str = ""
    class_name: str = ""
    package_name: str = ""
    text: str = ""
    content_desc: str = ""
    checkable: bool = False
    checked: bool = False
    clickable: bool = False
    enabled: bool = True
    focusable: bool = False
    focused: bool = False
    scrollable: bool = False
    long_clickable: bool = False
    password: bool = False
    selected: bool = False

    @property
    def center_x(self) -> int:
        return self.bounds.center_x

    @property
    def center_y(self) -> int:
        return self.bounds.center_y

    @property
    def width(self) -> int:
        return self.bounds.width

    @property
    def height(self) -> int:
        return self.bounds.height

    @property
    def short_class(self) -> str:
        """简化类名：android.widget.Button -> Button"""
        return self.class_name.split('.')[-1] if self.class_name else ''

    @property
    def label(self) -> str:
        """对比用标签：text > content-desc > resource-id"""
        return self.text or self.content_desc or self.resource_id


@dataclass(frozen=True)
class MatchResult:
    """模糊匹配结果"""

    element: Element
    confidence: int
    reason: str


@dataclass(frozen=True)
class DiffResult:
    """两次采集之间的元素差异"""

    appeared: Tuple[str, ...]
    disappeared: Tuple[str, ...]
    before_count: int
    after_count: int
    screen_changed: bool


@dataclass(frozen=True)
class Region:
    """截图中的矩形区域"""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class ScreenDiff:
    """截图差异：变化百分比（0-100）+ 变化区域（局部变化时才有）"""

    change_percent: float
    changed_region: Optional[Region] = None


@dataclass(frozen=True)
class ImagePayload:
    """base64 图片数据"""

    data: str
    mime_type: str


@dataclass
class ToolResult:
    """工具返回值：文本，或图片 + 可选文本"""

    text: Optional[str] = None
    image: Optional[ImagePayload] = None

    def as_text(self) -> str:
        """转换为纯文本（Flow / Batch 汇总用）"""
        if self.text is not None:
            return self.text
        if self.image is not None:
            return f"[image {self.image.mime_type}]"
        return ""


@dataclass(frozen=True)
class HintResult:
    """
    操作提示

    提示是尽力而为的附加信息：获取失败时 error 有值、text 为空，
    主操作的结果不受影响。
    """

    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.error is None

    def render(self) -> str:
        if self.error is not None:
            return f"\n--- Hints ---\nhints unavailable: {self.error}"
        return "\n--- Hints ---\n" + (self.text or "")


@dataclass(frozen=True)
class ScreenAnalysis:
    """屏幕结构化分析（analyze_screen 的结果，不需要截图）"""

    activity: Optional[str]
    title: Optional[str]
    buttons: Tuple[Element, ...]
    inputs: Tuple[Element, ...]
    texts: Tuple[str, ...]
    scrollables: Tuple[Element, ...]
    has_dialog: bool
    total: int
