"""
Utility functions for saug.

This module holds the pure string handling of the pipeline (image tag
extraction, host filtering, file naming), folder provisioning, and the
run-wide deadline shared by every network call.
"""

import asyncio
import logging
import re
import time
from pathlib import Path, PurePosixPath
from typing import Awaitable, Iterable, List, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bracketed image markup with a single captured URL, e.g. "[img]https://...[/img]"
IMG_PATTERN = re.compile(r"\[img\]([^\[]*)\[/img\]")

# Only images on this host are downloaded
IMAGE_HOST = "abload.de/"

THUMB_SEGMENT = "/thumb/"
FULL_IMAGE_SEGMENT = "/img/"


def extract_image_urls(pages: Iterable[str]) -> List[str]:
    """
    Collect every image URL embedded in ``[img]...[/img]`` tags.

    Matches are returned in discovery order: page order first, then
    left-to-right within a page. Each URL is normalised on the way out:

    1. The first "/thumb/" path segment is rewritten to "/img/" so the
       full-size image is fetched instead of its thumbnail.
    2. Carriage returns and line feeds are removed. Posts frequently wrap
       long URLs across lines.

    Args:
        pages: Raw page texts of one thread

    Returns:
        List of image URLs, possibly empty

    Example:
        extract_image_urls(["[img]https://abload.de/thumb/a.jpg[/img]"])
        # Returns: ["https://abload.de/img/a.jpg"]
    """
    urls = []
    for page in pages:
        for match in IMG_PATTERN.finditer(page):
            url = match.group(1).replace(THUMB_SEGMENT, FULL_IMAGE_SEGMENT, 1)
            url = url.replace("\r", "").replace("\n", "")
            urls.append(url)
    return urls


XML_ENCODING = re.compile(rb"^\s*<\?xml[^>]*\bencoding=[\"']([A-Za-z0-9._-]+)[\"']")


def decode_page(content: bytes, charset: Optional[str] = None) -> str:
    """
    Decode a page body without losing bytes.

    The encoding named in the XML declaration wins, then the charset from
    the Content-Type header, then UTF-8. A body that does not decode with
    that encoding is read as ISO-8859-1, which maps every byte to one
    character.

    Example:
        decode_page("[img]https://abload.de/img/k\xe4se.jpg[/img]".encode("latin-1"))
        # Returns: "[img]https://abload.de/img/k\xe4se.jpg[/img]"
    """
    match = XML_ENCODING.match(content)
    encoding = match.group(1).decode("ascii") if match else charset or "utf-8"
    try:
        return content.decode(encoding)
    except (LookupError, UnicodeDecodeError):
        return content.decode("latin-1")


def filter_image_urls(urls: Iterable[str], host: str = IMAGE_HOST) -> List[str]:
    """Keep only the URLs that contain ``host``, preserving order."""
    return [url for url in urls if host in url]


def filename_from_url(url: str) -> str:
    """
    Derive the local file name for an image URL.

    The name is the last path segment with any query string removed.
    Directory segments are ignored, so the result can never point outside
    the thread folder.

    Example:
        filename_from_url("https://abload.de/img/foo123.jpg?t=1700000000")
        # Returns: "foo123.jpg"
    """
    return PurePosixPath(url).name.split("?", 1)[0]


def ensure_folders(names: Iterable[str], root: Union[str, Path] = ".") -> List[Path]:
    """
    Create one directory per name under ``root`` unless it already exists.

    Existing directories are left untouched. Errors from the filesystem
    propagate to the caller.

    Returns:
        The directory paths, in input order
    """
    root = Path(root)
    folders = []
    for name in names:
        folder = root / name
        if not folder.is_dir():
            logger.debug("Creating folder %s", folder)
            folder.mkdir(parents=True, exist_ok=True)
        folders.append(folder)
    return folders


class DeadlineExceeded(asyncio.TimeoutError):
    """Raised when an operation is attempted or still running past the deadline."""


class Deadline:
    """
    A single clock for a whole run.

    The deadline starts when it is created. Every network operation is
    awaited through :meth:`run`, which bounds it by whatever time is left.
    Once the deadline has passed, in-flight operations are cancelled and new
    ones fail immediately with :class:`DeadlineExceeded`.

    Usage:
        deadline = Deadline(20.0)
        response = await deadline.run(client.get(url))
    """

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    async def run(self, aw: Awaitable[T]) -> T:
        remaining = self.remaining()
        if remaining <= 0:
            # Never awaited, so close it to avoid a "was never awaited" warning
            if asyncio.iscoroutine(aw):
                aw.close()
            raise DeadlineExceeded(f"deadline of {self.seconds:g}s exceeded")
        try:
            return await asyncio.wait_for(aw, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise DeadlineExceeded(f"deadline of {self.seconds:g}s exceeded") from exc
