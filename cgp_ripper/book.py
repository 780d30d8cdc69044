#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
book.py

Per-page asset access for one CGP online book. Every page of the reader is
served as two separate files from the CloudFront-protected asset store:

  * a raster "substrate" (the page background) at one of four qualities
  * an SVG "vector layer" with the text, which needs the reader's UNI token
    and is simply missing for some pages or accounts

`generate_cloudfront()` trades the reader's ASP.NET session id for the
CloudFront cookies the asset store wants; a `Book` then fetches assets with
those cookies.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import requests

from .errors import AuthError

################################################################################
# CONFIG
################################################################################

LIBRARY_URL = "https://library.cgpbooks.co.uk"

# Reader entry point; visiting it with a valid session sets CloudFront-* cookies
ONLINE_BOOK_URL = LIBRARY_URL + "/digitalaccess/{book_id}/Online"

# Asset store for the flipbook files of one book
ASSETS_URL = LIBRARY_URL + "/digitalcontent/{book_id}/files/assets/common"
BACKGROUND_URL = ASSETS_URL + "/page-html5-substrates/page{page:04d}_{quality}.{ext}"
OVERLAY_URL = ASSETS_URL + "/page-vectorlayers/{page:04d}.svg"

# Substrates are served as JPEG unless the server says otherwise
BACKGROUND_EXT = "jpg"
BACKGROUND_FORMAT = "jpeg"

QUALITIES = (1, 2, 3, 4)

# Per-request time bound; the asset store doesn't enforce one
FETCH_TIMEOUT_SECS = 30

SESSION_COOKIE = "ASP.NET_SessionId"
CLOUDFRONT_COOKIE_PREFIX = "CloudFront-"

# XML declaration, processing instructions, comments and DOCTYPE ahead of the root element
SVG_PROLOG = re.compile(
    rb"(?:\s+|<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>\[]*(?:\[.*?\])?\s*>)*",
    re.DOTALL | re.IGNORECASE,
)

# Headers to mimic a real browser
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

################################################################################
# DATA
################################################################################


@dataclass
class AuthContext:
    book_id: str
    cookies: dict = field(default_factory=dict)


@dataclass
class BackgroundAsset:
    data: bytes
    format: str


@dataclass
class OverlayAsset:
    data: bytes


################################################################################
# HELPERS
################################################################################

def validate_quality(quality) -> int:
    """
    Parse a background quality selector (1-4). Raises ValueError for anything
    else, so callers can fail before a single page is requested.
    """
    try:
        parsed = int(quality)
    except (TypeError, ValueError):
        raise ValueError(f"Quality must be between 1 and 4, got {quality!r}")
    if parsed not in QUALITIES:
        raise ValueError(f"Quality must be between 1 and 4, got {quality!r}")
    return parsed


def format_from_content_type(content_type: Optional[str], default: str) -> str:
    """'image/jpeg; charset=...' -> 'jpeg'. Non-image types give `default`."""
    if not content_type:
        return default
    mime = content_type.split(";", 1)[0].strip().lower()
    if not mime.startswith("image/"):
        return default
    subtype = mime[len("image/"):]
    if subtype == "jpg":
        return "jpeg"
    return subtype or default


def is_svg_content(content: bytes) -> bool:
    """True when the root element, after any XML prolog, is <svg>."""
    body = content.lstrip(b"\xef\xbb\xbf")
    prolog = SVG_PROLOG.match(body)
    return body[prolog.end():prolog.end() + 4].lower() == b"<svg"


def generate_cloudfront(book_id: str, session_id: str, session: Optional[requests.Session] = None) -> AuthContext:
    """
    Open the online reader for `book_id` with the stored ASP.NET session and
    collect the CloudFront cookies it hands out.
    """
    if not session_id:
        raise AuthError("No session id configured. Run 'configure' first.")

    session = session or requests.Session()
    session.cookies.set(SESSION_COOKIE, session_id)
    url = ONLINE_BOOK_URL.format(book_id=book_id)
    logging.debug(f"Requesting CloudFront cookies from {url}")

    try:
        resp = session.get(url, headers=HEADERS, timeout=FETCH_TIMEOUT_SECS, allow_redirects=True)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise AuthError(f"Could not open book {book_id}: {exc}") from exc

    cookies = {
        name: value
        for name, value in session.cookies.items()
        if name.startswith(CLOUDFRONT_COOKIE_PREFIX)
    }
    if not cookies:
        raise AuthError(
            f"No CloudFront cookies issued for book {book_id}. "
            "Is the session id still valid and does the account own the book?"
        )
    logging.info(f"Got {len(cookies)} CloudFront cookies for book {book_id}")
    return AuthContext(book_id=book_id, cookies=cookies)


################################################################################
# BOOK
################################################################################

class Book:
    """Fetches page backgrounds and vector layers for one authorised book."""

    def __init__(self, auth: AuthContext, session: Optional[requests.Session] = None):
        self.auth = auth
        self.session = session or requests.Session()

    @property
    def book_id(self) -> str:
        return self.auth.book_id

    def _get(self, url: str, **kwargs) -> requests.Response:
        resp = self.session.get(
            url,
            headers=HEADERS,
            cookies=self.auth.cookies,
            timeout=FETCH_TIMEOUT_SECS,
            **kwargs,
        )
        resp.raise_for_status()
        return resp

    def background_url(self, index: int, quality: int) -> str:
        return BACKGROUND_URL.format(
            book_id=self.book_id, page=index, quality=quality, ext=BACKGROUND_EXT
        )

    def overlay_url(self, index: int) -> str:
        return OVERLAY_URL.format(book_id=self.book_id, page=index)

    def fetch_background(self, index: int, quality: int) -> BackgroundAsset:
        """Download the page background. Any failure raises."""
        url = self.background_url(index, quality)
        logging.debug(f"GET background p{index}: {url}")
        resp = self._get(url)
        fmt = format_from_content_type(
            resp.headers.get("Content-Type"),
            BACKGROUND_FORMAT,
        )
        return BackgroundAsset(data=resp.content, format=fmt)

    def fetch_overlay(self, index: int, uni: Optional[str]) -> Optional[OverlayAsset]:
        """
        Download the SVG text layer. Returns None when there is no token, the
        request fails, or the payload isn't SVG: all of those just mean the
        page goes out background-only.
        """
        if not uni:
            return None
        url = self.overlay_url(index)
        try:
            resp = self._get(url, params={"uni": uni})
        except requests.RequestException as exc:
            logging.debug(f"No overlay for p{index}: {exc}")
            return None
        if not is_svg_content(resp.content):
            logging.debug(f"No overlay for p{index}: response is not SVG")
            return None
        return OverlayAsset(data=resp.content)
