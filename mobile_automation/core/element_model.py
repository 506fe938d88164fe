#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
UI 元素模型 - 查找、模糊匹配、前后对比

功能：
1. find_elements: 按 text / resource-id / class / clickable 查找（不区分大小写的子串匹配）
2. find_best_match: 按自然语言描述给每个元素打分，返回最佳匹配及置信度
3. diff_elements: 对比两次采集，判断是局部更新还是进入了新页面
4. suggest_next_actions: 根据当前元素给出下一步建议
5. analyze_screen: 结构化屏幕分析（按钮、输入框、文本、可滚动区域、标题、弹窗）

所有函数都是纯函数，不访问设备。
"""
import re
from typing import Iterable, List, Optional, Sequence

from mobile_automation.errors import ValidationError
from mobile_automation.models import DiffResult, Element, MatchResult, ScreenAnalysis

# 默认的"进入新页面"判定比例（元素数量变化超过较大集合的 30%）
DEFAULT_SCREEN_CHANGE_RATIO = 0.3

MAX_SUGGESTIONS = 5

_EDITABLE_CLASSES = ("EditText", "AutoCompleteTextView", "TextField", "SearchField", "AXTextArea")
_TOKEN_RE = re.compile(r'[a-z0-9]+|[^\x00-\x7f]')


def is_editable(element: Element) -> bool:
    """是否是输入框"""
    return element.password or any(name in element.class_name for name in _EDITABLE_CLASSES)


# ==================== 查找 ====================

def find_by_text(elements: Iterable[Element], text: str) -> List[Element]:
    """按文本查找（同时匹配 text 和 content-desc）"""
    needle = text.lower()
    return [
        e for e in elements
        if needle in e.text.lower() or needle in e.content_desc.lower()
    ]


def find_by_resource_id(elements: Iterable[Element], resource_id: str) -> List[Element]:
    """按 resource-id 查找（子串匹配）"""
    needle = resource_id.lower()
    return [e for e in elements if needle in e.resource_id.lower()]


def find_elements(
    elements: Iterable[Element],
    text: Optional[str] = None,
    resource_id: Optional[str] = None,
    class_name: Optional[str] = None,
    clickable: Optional[bool] = None,
) -> List[Element]:
    """
    按条件查找元素，所有条件同时满足

    Args:
        elements: 元素列表
        text: 文本（匹配 text 或 content-desc）
        resource_id: resource-id
        class_name: 类名
        clickable: 是否可点击

    Returns:
        匹配的元素（文档顺序）

    Raises:
        ValidationError: 没有提供任何条件
    """
    if not text and not resource_id and not class_name and clickable is None:
        raise ValidationError("Provide at least one search criteria: text, resourceId, className or clickable")

    result = list(elements)
    if text:
        result = find_by_text(result, text)
    if resource_id:
        result = find_by_resource_id(result, resource_id)
    if class_name:
        needle = class_name.lower()
        result = [e for e in result if needle in e.class_name.lower()]
    if clickable is not None:
        result = [e for e in result if e.clickable == clickable]
    return result


# ==================== 模糊匹配 ====================

def _tokens(value: str) -> List[str]:
    return _TOKEN_RE.findall(value.lower())


def _short_id(resource_id: str) -> str:
    """com.app:id/submit_button -> submit button"""
    return resource_id.split('/')[-1].replace('_', ' ').strip().lower()


def _score(element: Element, query: str, query_tokens: Sequence[str]):
    text = element.text.lower()
    desc = element.content_desc.lower()
    rid = _short_id(element.resource_id)

    # 精确匹配 > 子串匹配 > 分词重合
    if text and text == query:
        score, reason = 100, f'exact text match "{element.text}"'
    elif desc and desc == query:
        score, reason = 95, f'exact description match "{element.content_desc}"'
    elif rid and rid == query:
        score, reason = 90, f'exact resource-id match "{element.resource_id}"'
    elif text and query in text:
        score, reason = 70, f'text contains "{query}"'
    elif desc and query in desc:
        score, reason = 65, f'description contains "{query}"'
    elif rid and query in rid:
        score, reason = 60, f'resource-id contains "{query}"'
    else:
        element_tokens = set(_tokens(f"{text} {desc} {rid}"))
        overlap = [t for t in query_tokens if t in element_tokens]
        if not overlap:
            return 0, ""
        score = int(round(len(overlap) / len(query_tokens) * 50))
        reason = f"token overlap {len(overlap)}/{len(query_tokens)} ({', '.join(overlap)})"

    if score > 0:
        if element.clickable:
            score += 10
            reason += ", clickable"
        if not element.enabled:
            score -= 10
            reason += ", disabled"
    return max(0, min(score, 100)), reason


def find_best_match(elements: Sequence[Element], description: str) -> Optional[MatchResult]:
    """
    按自然语言描述找最佳匹配元素

    打分规则：精确字段匹配 > 子串匹配 > 分词重合，可点击元素加分，禁用元素减分。
    只负责打分，不做置信度门槛判断（由调用方决定）。

    Args:
        elements: 元素列表
        description: 描述，如 "submit button"

    Returns:
        MatchResult，没有元素或所有元素得分为 0 时返回 None
    """
    query = (description or "").strip().lower()
    if not elements or not query:
        return None

    query_tokens = _tokens(query)
    best: Optional[MatchResult] = None
    for element in elements:
        score, reason = _score(element, query, query_tokens)
        if score > 0 and (best is None or score > best.confidence):
            best = MatchResult(element=element, confidence=score, reason=reason)
    return best


# ==================== 前后对比 ====================

def _labels(elements: Iterable[Element]) -> List[str]:
    seen = set()
    labels = []
    for e in elements:
        label = e.label
        if label and label not in seen:
            seen.add(label)
            labels.append(label)
    return labels


def diff_elements(
    before: Sequence[Element],
    after: Sequence[Element],
    change_ratio: float = DEFAULT_SCREEN_CHANGE_RATIO,
) -> DiffResult:
    """
    对比两次采集

    元素按标签（text > content-desc > resource-id）比较。
    元素数量变化超过较大集合的 change_ratio，或之前一半以上的标签消失，
    认为进入了新页面（screen_changed）。
    """
    before_labels = _labels(before)
    after_labels = _labels(after)
    before_set = set(before_labels)
    after_set = set(after_labels)

    appeared = tuple(label for label in after_labels if label not in before_set)
    disappeared = tuple(label for label in before_labels if label not in after_set)

    before_count = len(before)
    after_count = len(after)
    larger = max(before_count, after_count)
    screen_changed = (
        abs(after_count - before_count) > change_ratio * larger
        or len(disappeared) > len(before_labels) / 2
    )

    return DiffResult(
        appeared=appeared,
        disappeared=disappeared,
        before_count=before_count,
        after_count=after_count,
        screen_changed=screen_changed,
    )


# ==================== 建议 ====================

def suggest_next_actions(elements: Sequence[Element]) -> List[str]:
    """根据当前元素给出最多 5 条下一步建议"""
    inputs = []
    buttons = []
    scrolls = []
    for e in elements:
        if is_editable(e):
            name = e.content_desc or _short_id(e.resource_id) or "text field"
            if e.text:
                inputs.append(f'Edit "{name}" [{e.index}] (current: {e.text[:30]})')
            else:
                inputs.append(f'Type into "{name}" [{e.index}]')
        elif e.clickable and e.enabled and e.label:
            buttons.append(f'Tap "{e.label[:30]}" [{e.index}]')
        elif e.scrollable:
            scrolls.append(f"Scroll {e.short_class or 'container'} [{e.index}] for more")

    suggestions = inputs[:2] + buttons[:3] + scrolls[:1]
    return suggestions[:MAX_SUGGESTIONS]


# ==================== 屏幕分析 ====================

def analyze_screen(elements: Sequence[Element], activity: Optional[str] = None) -> ScreenAnalysis:
    """
    结构化屏幕分析（不需要截图）

    Args:
        elements: 元素列表
        activity: 当前前台页面（可选）
    """
    buttons = []
    inputs = []
    scrollables = []
    texts = []
    seen_texts = set()
    has_dialog = False

    for e in elements:
        lowered = f"{e.class_name} {e.resource_id}".lower()
        if "dialog" in lowered or "alert" in lowered:
            has_dialog = True

        if is_editable(e):
            inputs.append(e)
        elif e.clickable and e.label:
            buttons.append(e)
        elif e.text and e.text not in seen_texts:
            seen_texts.add(e.text)
            texts.append(e.text)

        if e.scrollable:
            scrollables.append(e)

    # 标题：屏幕顶部 15% 内第一个不可点击的文本
    title = None
    if elements:
        screen_height = max(e.bounds.y2 for e in elements)
        for e in elements:
            if e.text and not e.clickable and not is_editable(e) and e.center_y < screen_height * 0.15:
                title = e.text
                break

    return ScreenAnalysis(
        activity=activity,
        title=title,
        buttons=tuple(buttons),
        inputs=tuple(inputs),
        texts=tuple(texts[:20]),
        scrollables=tuple(scrollables),
        has_dialog=has_dialog,
        total=len(elements),
    )
