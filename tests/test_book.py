import pytest
import requests

from cgp_ripper.book import (
    AuthContext,
    Book,
    format_from_content_type,
    generate_cloudfront,
    is_svg_content,
    validate_quality,
)
from cgp_ripper.errors import AuthError

from conftest import SVG, FakeHttp, FakeResponse, make_image


def make_book(routes):
    http = FakeHttp(routes)
    return Book(AuthContext("9781789080000", {"CloudFront-Policy": "p"}), session=http), http


@pytest.mark.parametrize("value", [1, 2, 3, 4, "1", "4"])
def test_validate_quality_accepts_known_levels(value):
    assert validate_quality(value) == int(value)


@pytest.mark.parametrize("value", [0, 5, -1, "high", None, "2.5"])
def test_validate_quality_rejects_everything_else(value):
    with pytest.raises(ValueError, match="between 1 and 4"):
        validate_quality(value)


def test_format_from_content_type():
    assert format_from_content_type("image/jpeg", "x") == "jpeg"
    assert format_from_content_type("image/png; charset=binary", "x") == "png"
    assert format_from_content_type("image/jpg", "x") == "jpeg"
    assert format_from_content_type("application/octet-stream", "jpeg") == "jpeg"
    assert format_from_content_type(None, "jpeg") == "jpeg"


def test_is_svg_content():
    assert is_svg_content(SVG)
    assert not is_svg_content(b"<html><body>Access denied</body></html>")


def test_is_svg_content_skips_long_prolog():
    licence = b"<!-- " + b"x" * 5000 + b" -->\n"
    doctype = b'<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN" "http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">\n'
    svg = b'<?xml version="1.0" encoding="UTF-8"?>\n' + licence + doctype + b'<svg xmlns="http://www.w3.org/2000/svg"/>'
    assert is_svg_content(svg)
    assert is_svg_content(b"\xef\xbb\xbf" + svg)


def test_is_svg_content_needs_svg_root():
    assert not is_svg_content(b"<html><body><svg></svg></body></html>")
    assert not is_svg_content(b"")


def test_urls_use_zero_padded_page_and_quality():
    book, _ = make_book({})
    assert book.background_url(7, 3).endswith("/page-html5-substrates/page0007_3.jpg")
    assert book.overlay_url(12).endswith("/page-vectorlayers/0012.svg")
    assert "9781789080000" in book.background_url(1, 1)


def test_fetch_background_sends_cookies_and_timeout():
    png = make_image(20, 10)
    book, http = make_book({"page0001_2": FakeResponse(png, headers={"Content-Type": "image/png"})})

    asset = book.fetch_background(1, 2)

    assert asset.data == png
    assert asset.format == "png"
    _, _, kwargs = http.calls[0]
    assert kwargs["cookies"] == {"CloudFront-Policy": "p"}
    assert kwargs["timeout"] > 0


def test_fetch_background_raises_on_http_error():
    book, _ = make_book({"page0001_2": FakeResponse(b"", status_code=403)})
    with pytest.raises(requests.HTTPError):
        book.fetch_background(1, 2)


def test_fetch_overlay_passes_uni_token():
    book, http = make_book({"0003.svg": FakeResponse(SVG)})

    overlay = book.fetch_overlay(3, "tok")

    assert overlay.data == SVG
    _, params, _ = http.calls[0]
    assert params == {"uni": "tok"}


@pytest.mark.parametrize(
    "outcome",
    [
        FakeResponse(b"", status_code=403),
        FakeResponse(b"<html>denied</html>"),
        requests.ConnectionError("boom"),
        requests.Timeout("slow"),
    ],
)
def test_fetch_overlay_failures_become_none(outcome):
    book, _ = make_book({"0001.svg": outcome})
    assert book.fetch_overlay(1, "tok") is None


def test_fetch_overlay_without_token_skips_request():
    book, http = make_book({"0001.svg": FakeResponse(SVG)})
    assert book.fetch_overlay(1, None) is None
    assert http.calls == []


def _session_with_cookies(monkeypatch, cookies, status_code=200):
    session = requests.Session()

    def fake_get(url, **kwargs):
        for name, value in cookies.items():
            session.cookies.set(name, value)
        return FakeResponse(b"<html></html>", status_code=status_code)

    monkeypatch.setattr(session, "get", fake_get)
    return session


def test_generate_cloudfront_collects_cloudfront_cookies(monkeypatch):
    session = _session_with_cookies(
        monkeypatch,
        {"CloudFront-Policy": "pol", "CloudFront-Signature": "sig", "other": "x"},
    )

    auth = generate_cloudfront("book1", "sess", session=session)

    assert auth.book_id == "book1"
    assert auth.cookies == {"CloudFront-Policy": "pol", "CloudFront-Signature": "sig"}
    assert session.cookies.get("ASP.NET_SessionId") == "sess"


def test_generate_cloudfront_without_cookies_is_fatal(monkeypatch):
    session = _session_with_cookies(monkeypatch, {})
    with pytest.raises(AuthError):
        generate_cloudfront("book1", "sess", session=session)


def test_generate_cloudfront_http_error_is_fatal(monkeypatch):
    session = _session_with_cookies(monkeypatch, {}, status_code=401)
    with pytest.raises(AuthError):
        generate_cloudfront("book1", "sess", session=session)


def test_generate_cloudfront_requires_session_id():
    with pytest.raises(AuthError):
        generate_cloudfront("book1", "")
