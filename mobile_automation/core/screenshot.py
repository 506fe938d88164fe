#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
截图处理 - 压缩、裁剪、元素标注

所有函数都在内存中处理原始图片数据，返回 base64 编码的 ImagePayload
或新的 PNG 数据，不落盘。
"""
import base64
import io
from typing import Sequence

from PIL import Image, ImageDraw, ImageFont

from mobile_automation.models import Element, ImagePayload, Region

# 标注颜色：绿色=可点击，红色=不可点击
CLICKABLE_COLOR = (0, 200, 0, 220)
NON_CLICKABLE_COLOR = (230, 0, 0, 200)
MAX_ANNOTATIONS = 80


def _to_rgb(img: Image.Image) -> Image.Image:
    """处理透明通道，转成 JPEG 可保存的 RGB"""
    if img.mode in ('RGBA', 'LA', 'P'):
        if img.mode == 'P':
            img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1] if img.mode in ('RGBA', 'LA') else None)
        return background
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def png_payload(data: bytes) -> ImagePayload:
    """原图（不压缩）"""
    return ImagePayload(data=base64.b64encode(data).decode('ascii'), mime_type="image/png")


def compress_image(
    data: bytes,
    max_width: int = 800,
    max_height: int = 1400,
    quality: int = 70,
) -> ImagePayload:
    """
    压缩截图：等比缩放到 max_width x max_height 以内，保存为 JPEG

    Args:
        data: 原始图片数据
        max_width: 最大宽度
        max_height: 最大高度
        quality: JPEG 质量（1-100）
    """
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        ratio = min(max_width / img.width, max_height / img.height, 1.0)
        if ratio < 1.0:
            new_size = (max(1, int(img.width * ratio)), max(1, int(img.height * ratio)))
            img = img.resize(new_size, Image.Resampling.LANCZOS)
        img = _to_rgb(img)
        buffer = io.BytesIO()
        img.save(buffer, "JPEG", quality=quality)
    return ImagePayload(data=base64.b64encode(buffer.getvalue()).decode('ascii'), mime_type="image/jpeg")


def crop_region(data: bytes, region: Region, padding: int = 20) -> bytes:
    """
    裁剪变化区域（四周外扩 padding 像素，不超出图片边界）

    Returns:
        PNG 数据
    """
    with Image.open(io.BytesIO(data)) as img:
        area = padded_region(region, img.width, img.height, padding)
        cropped = img.crop((area.x, area.y, area.x + area.width, area.y + area.height))
        buffer = io.BytesIO()
        cropped.save(buffer, "PNG")
    return buffer.getvalue()


def padded_region(region: Region, width: int, height: int, padding: int = 20) -> Region:
    """计算外扩后的区域（不超出图片边界）"""
    left = max(0, region.x - padding)
    top = max(0, region.y - padding)
    right = min(width, region.x + region.width + padding)
    bottom = min(height, region.y + region.height + padding)
    return Region(x=left, y=top, width=right - left, height=bottom - top)


def image_width(data: bytes) -> int:
    with Image.open(io.BytesIO(data)) as img:
        return img.width


def annotate_elements(data: bytes, elements: Sequence[Element], scale: float = 1.0) -> bytes:
    """
    在截图上给元素画编号框

    Args:
        data: 原始截图
        elements: 要标注的元素（编号使用元素 index）
        scale: 元素坐标 -> 图片像素的缩放比例（iOS 逻辑坐标需要放大）

    Returns:
        PNG 数据
    """
    with Image.open(io.BytesIO(data)) as src:
        img = src.convert('RGBA')
    draw = ImageDraw.Draw(img, 'RGBA')
    font = ImageFont.load_default()
    img_width, img_height = img.size

    for element in list(elements)[:MAX_ANNOTATIONS]:
        b = element.bounds
        x1 = max(0, min(int(b.x1 * scale), img_width - 1))
        y1 = max(0, min(int(b.y1 * scale), img_height - 1))
        x2 = max(x1 + 1, min(int(b.x2 * scale), img_width))
        y2 = max(y1 + 1, min(int(b.y2 * scale), img_height))

        color = CLICKABLE_COLOR if element.clickable else NON_CLICKABLE_COLOR
        draw.rectangle([x1, y1, x2, y2], outline=color, width=2)

        label = str(element.index)
        text_box = draw.textbbox((x1, y1), label, font=font)
        draw.rectangle([text_box[0] - 1, text_box[1] - 1, text_box[2] + 2, text_box[3] + 1], fill=color)
        draw.text((x1, y1), label, fill=(255, 255, 255), font=font)

    buffer = io.BytesIO()
    _to_rgb(img).save(buffer, "PNG")
    return buffer.getvalue()
