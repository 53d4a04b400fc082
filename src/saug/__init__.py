"""
saug - forum.mods.de image scraper

This package downloads the abload.de images posted in forum.mods.de threads
into one local folder per thread.

Main components:
- ThreadScraper: Validates threads, fetches pages and starts the downloads
- Downloader: Streams the images of one thread to disk
- ThreadDescriptor: Data model for a validated thread
- Utility functions for image link extraction and the run deadline

Usage:
    import asyncio
    import saug

    results = asyncio.run(saug.run(["219436"], output_dir="images"))
"""

from .downloader import Downloader
from .models import DownloadResult, ThreadDescriptor, ThreadOverview
from .scraper import ScrapeError, ThreadScraper, parse_overview, run
from .utils import (
    Deadline,
    DeadlineExceeded,
    decode_page,
    extract_image_urls,
    filename_from_url,
    filter_image_urls,
)

__all__ = [
    'ThreadScraper',
    'Downloader',
    'ThreadDescriptor',
    'ThreadOverview',
    'DownloadResult',
    'ScrapeError',
    'Deadline',
    'DeadlineExceeded',
    'decode_page',
    'extract_image_urls',
    'filter_image_urls',
    'filename_from_url',
    'parse_overview',
    'run',
]

__version__ = '1.0.0'
