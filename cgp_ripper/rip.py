#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
rip.py

Drives a whole book through the pipeline:

  1) Fetch: build every page concurrently and wait for all of them.
  2) Render + merge: walk pages in index order on the calling thread,
     skipping the ones that failed, rendering each onto the single browser
     tab and appending the result to the merger.
  3) Save: write the merged book once, at the very end.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .book import Book, generate_cloudfront, validate_quality
from .builder import PageBuilder
from .errors import EmptyBookError
from .session import load_session_id
from .sink import PageRenderer, PdfAccumulator

################################################################################
# CONFIG
################################################################################

DEFAULT_WORKERS = 8
DEFAULT_OUTPUT_DIR = "./output"


@dataclass
class RipResult:
    output_path: str
    ripped: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)


def validate_page_count(pages) -> int:
    try:
        parsed = int(pages)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid page count {pages!r}. Use --pages <number>")
    if parsed < 1:
        raise ValueError(f"Invalid page count {pages!r}. Use --pages <number>")
    return parsed


def validate_worker_count(workers) -> int:
    if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
        raise ValueError(f"Invalid worker count {workers!r}. Use --workers <number> (at least 1)")
    return workers


def output_path_for(book_id: str, output_dir: str = DEFAULT_OUTPUT_DIR) -> str:
    return os.path.join(output_dir, f"{book_id}.pdf")


################################################################################
# PIPELINE
################################################################################

def fetch_pages(builder, page_count: int, max_workers: int = DEFAULT_WORKERS) -> list:
    """
    Run builder.build(i) for i in 1..page_count on a thread pool and return
    the results as a list ordered by page index. Returns only once every
    page has settled.
    """
    results = [None] * page_count
    pool = ThreadPoolExecutor(max_workers=max_workers)
    try:
        futures = {pool.submit(builder.build, i): i for i in range(1, page_count + 1)}
        for fut in as_completed(futures):
            idx = futures[fut]
            results[idx - 1] = fut.result()
    except BaseException:
        pool.shutdown(wait=True, cancel_futures=True)
        raise
    pool.shutdown(wait=True)
    return results


def rip_book(
    builder,
    page_count: int,
    renderer,
    merger,
    output_path: str,
    max_workers: int = DEFAULT_WORKERS,
) -> RipResult:
    """
    Fetch all pages, then render and merge them strictly in page order and
    save the book to output_path. Pages that could not be built are left out.
    `renderer` needs render(html, width, height) -> bytes; `merger` needs
    add(bytes), save(path) and page_count.
    """
    page_count = validate_page_count(page_count)
    result = RipResult(output_path=output_path)

    logging.info(f"Fetching {page_count} pages ({max_workers} workers)...")
    pages = fetch_pages(builder, page_count, max_workers)

    logging.info("Rendering pages...")
    for index, page in enumerate(pages, start=1):
        if page is None:
            logging.error(f"Page {index} could not be built, skipping")
            result.skipped.append(index)
            continue
        pdf_bytes = renderer.render(page.html, page.width, page.height)
        merger.add(pdf_bytes)
        result.ripped.append(index)
        logging.info(f"Added page {index} to PDF")

    if not result.ripped:
        raise EmptyBookError(f"None of the {page_count} pages could be ripped")

    merger.save(output_path)
    if result.skipped:
        logging.warning(f"Skipped {len(result.skipped)} pages: {result.skipped}")
    return result


def rip(
    book_id: str,
    pages,
    quality,
    uni: Optional[str] = None,
    config_file: str = "config.json",
    output_dir: str = DEFAULT_OUTPUT_DIR,
    max_workers: int = DEFAULT_WORKERS,
) -> RipResult:
    """Validate arguments, authorise against the library and rip the book to <output_dir>/<book_id>.pdf."""
    if not book_id:
        raise ValueError("Missing book ID. Use --book <id>")
    page_count = validate_page_count(pages)
    quality = validate_quality(quality)
    max_workers = validate_worker_count(max_workers)

    session_id = load_session_id(config_file)
    output_path = output_path_for(book_id, output_dir)

    with requests.Session() as http:
        auth = generate_cloudfront(book_id, session_id, session=http)
        book = Book(auth, session=http)
        builder = PageBuilder(book, quality, uni)

        with PageRenderer() as renderer, PdfAccumulator() as merger:
            return rip_book(builder, page_count, renderer, merger, output_path, max_workers)
