#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
sink.py

The two stateful resources of a rip:

  * PageRenderer   - one headless Chromium tab; loads a page document and
                     prints it to a single PDF page of a given pixel size.
  * PdfAccumulator - PyPDF2 merger that collects those one-page PDFs in
                     call order and writes the finished book at the end.

Both are context managers so the browser process and the merger are
released on every exit path. Neither is thread-safe: drive them from one
thread, one page at a time.
"""

import logging
import os
from io import BytesIO

from playwright.sync_api import sync_playwright
from PyPDF2 import PdfMerger, PdfReader

# Time allowed for a page document (all inline data) to finish loading
RENDER_TIMEOUT_MS = 60_000


class PageRenderer:
    def __init__(self, headless: bool = True):
        self.headless = headless
        self._playwright = None
        self._browser = None
        self._page = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=self.headless)
            self._page = self._browser.new_page()
        except Exception:
            self.close()
            raise
        logging.debug("Chromium render page ready")

    def render(self, html: str, width: int, height: int) -> bytes:
        """Render `html` onto exactly one PDF page of width x height pixels."""
        if self._page is None:
            raise RuntimeError("PageRenderer is not open")
        self._page.set_content(html, wait_until="load", timeout=RENDER_TIMEOUT_MS)
        return self._page.pdf(
            width=f"{width}px",
            height=f"{height}px",
            print_background=True,
            margin={"top": "0", "bottom": "0", "left": "0", "right": "0"},
            page_ranges="1",
        )

    def close(self):
        try:
            if self._browser is not None:
                try:
                    self._browser.close()
                finally:
                    self._browser = None
                    self._page = None
        finally:
            if self._playwright is not None:
                try:
                    self._playwright.stop()
                finally:
                    self._playwright = None


class PdfAccumulator:
    def __init__(self):
        self._merger = PdfMerger()
        self.page_count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def add(self, pdf_bytes: bytes):
        reader = PdfReader(BytesIO(pdf_bytes))
        self._merger.append(reader)
        self.page_count += len(reader.pages)

    def save(self, path: str):
        """
        Write the merged PDF to `path`. The data goes to a temporary sibling
        first and is moved into place only once fully written.
        """
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = path + ".part"
        try:
            with open(tmp_path, "wb") as f_out:
                self._merger.write(f_out)
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        logging.info(f"Wrote {self.page_count} pages to {path}")

    def close(self):
        self._merger.close()
