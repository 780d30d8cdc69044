#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
compositor.py

Turns a page background (and its optional SVG text layer) into one small,
self-contained HTML document sized to the background's native pixel size.
Both layers are inlined as base64 data URLs, so the browser never has to go
back to the network at render time.
"""

import base64
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from .book import BackgroundAsset, OverlayAsset

# The background fills the box; the overlay sits on top at exactly the same
# box so SVG text lines up with the raster.
PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
@page {{ size: {width}px {height}px; margin: 0; }}
html, body {{ margin: 0; padding: 0; width: {width}px; height: {height}px; overflow: hidden; }}
.page {{ position: relative; width: {width}px; height: {height}px; }}
.page img {{ position: absolute; top: 0; left: 0; width: {width}px; height: {height}px; display: block; }}
</style>
</head>
<body>
<div class="page">
{layers}
</div>
</body>
</html>
"""

LAYER_TEMPLATE = '<img class="{name}" src="{src}" width="{width}" height="{height}">'


@dataclass
class ComposedPage:
    index: int
    html: str
    width: int
    height: int


def data_url(mime: str, payload: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def measure_image(data: bytes) -> Optional[Tuple[int, int]]:
    """
    Read (width, height) straight from the image bytes. None when Pillow
    can't identify the image or either side is zero.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logging.debug(f"Could not read image size: {exc}")
        return None
    if not width or not height:
        return None
    return width, height


def format_page(width: int, height: int, background_url: str, overlay_url: Optional[str] = None) -> str:
    layers = [LAYER_TEMPLATE.format(name="background", src=background_url, width=width, height=height)]
    if overlay_url:
        layers.append(LAYER_TEMPLATE.format(name="overlay", src=overlay_url, width=width, height=height))
    return PAGE_TEMPLATE.format(width=width, height=height, layers="\n".join(layers))


def compose_page(
    index: int,
    background: BackgroundAsset,
    overlay: Optional[OverlayAsset] = None,
) -> Optional[ComposedPage]:
    """Build the page document, or return None if the background has no usable size."""
    dims = measure_image(background.data)
    if dims is None:
        logging.warning(f"Page {index}: could not determine background dimensions")
        return None
    width, height = dims

    background_src = data_url(f"image/{background.format.lower()}", background.data)
    overlay_src = data_url("image/svg+xml", overlay.data) if overlay else None

    html = format_page(width, height, background_src, overlay_src)
    return ComposedPage(index=index, html=html, width=width, height=height)
