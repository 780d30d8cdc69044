"""
builder.py

Fetch both layers of one page and compose them. A page either comes back as
a ComposedPage or as None (skipped); errors never leave `build()`.
"""

import logging
from typing import Optional

from .book import Book, OverlayAsset
from .compositor import ComposedPage, compose_page


class PageBuilder:
    def __init__(self, book: Book, quality: int, uni: Optional[str] = None):
        self.book = book
        self.quality = quality
        self.uni = uni

    def _overlay(self, index: int) -> Optional[OverlayAsset]:
        try:
            return self.book.fetch_overlay(index, self.uni)
        except Exception as exc:
            logging.debug(f"Page {index}: ignoring overlay error: {exc}")
            return None

    def build(self, index: int) -> Optional[ComposedPage]:
        overlay = self._overlay(index)

        try:
            background = self.book.fetch_background(index, self.quality)
        except Exception as exc:
            logging.error(f"Page {index}: background fetch failed: {exc}")
            return None

        try:
            page = compose_page(index, background, overlay)
        except Exception as exc:
            logging.error(f"Page {index}: could not compose page: {exc}")
            return None

        if page is not None:
            layers = "background + overlay" if overlay else "background only"
            logging.info(f"Built HTML for page {index} ({page.width}x{page.height}, {layers})")
        return page
