import threading
from io import BytesIO

import pytest
import requests
from PIL import Image
from PyPDF2 import PdfWriter

SVG = b'<?xml version="1.0"?><svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><text>hi</text></svg>'


def make_image(width, height, fmt="PNG"):
    buf = BytesIO()
    Image.new("RGB", (width, height), color="white").save(buf, format=fmt)
    return buf.getvalue()


def blank_pdf(width, height):
    writer = PdfWriter()
    writer.add_blank_page(width=width, height=height)
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


class FakeResponse:
    def __init__(self, content=b"", status_code=200, headers=None):
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeHttp:
    """
    Stands in for requests.Session. `routes` maps a URL fragment to a
    FakeResponse or an exception instance to raise.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, params=None, **kwargs):
        with self._lock:
            self.calls.append((url, params, kwargs))
        for fragment, outcome in self.routes.items():
            if fragment in url:
                if isinstance(outcome, BaseException):
                    raise outcome
                return outcome
        return FakeResponse(b"not found", status_code=404)

    def urls(self, fragment=""):
        return [url for url, _, _ in self.calls if fragment in url]


class RecordingRenderer:
    """Renders each page to a blank PDF page of the requested size."""

    def __init__(self):
        self.rendered = []

    def render(self, html, width, height):
        self.rendered.append((html, width, height))
        return blank_pdf(width, height)


@pytest.fixture
def png_800x600():
    return make_image(800, 600)
