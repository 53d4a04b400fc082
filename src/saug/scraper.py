"""
Async image scraper for forum.mods.de threads.

This module drives the whole pipeline for a set of thread ids:

- Validate each id against the board's XML endpoint
- Create one folder per valid thread
- Fetch every page of a thread and pull out the abload.de image links
- Start one download task per thread and wait for all of them

Validation, folder creation and page fetching run one thread at a time and
any error there stops the run. Only the downloads run concurrently, and
their errors are logged per URL. One deadline bounds every request of the
run.

Target: https://forum.mods.de/bb/
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

import httpx
from lxml import etree
from tqdm import tqdm

from .downloader import Downloader
from .models import DownloadResult, ThreadDescriptor, ThreadOverview
from .utils import (
    Deadline,
    decode_page,
    ensure_folders,
    extract_image_urls,
    filter_image_urls,
)

logger = logging.getLogger(__name__)

# Forum URLs
BASE_URL = "https://forum.mods.de/bb/xml/thread.php"
THREAD_URL = BASE_URL + "?TID={tid}"
PAGE_URL = THREAD_URL + "&page={page}"

# Seconds for the whole run, shared by every request
REQUEST_TIMEOUT = 20.0

USER_AGENT = "saug/1.0 (+https://forum.mods.de/bb/)"

# Network failures that abort validation and page fetching
FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError)

XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


class ScrapeError(Exception):
    """A fatal error that stops the run."""


def parse_overview(content: bytes) -> ThreadOverview:
    """
    Parse the thread overview document returned by the XML endpoint.

    Only two direct children of the root element matter:

        <thread id="219436">
          <title>Fotothread</title>
          <number-of-pages value="3"/>
          ...
        </thread>

    A missing ``number-of-pages`` element, or one with an empty ``value``,
    counts as zero pages.

    Raises:
        etree.XMLSyntaxError: if the body is not well-formed XML
        ValueError: if the page count is not an integer
    """
    root = etree.fromstring(content, parser=XML_PARSER)
    title = root.findtext("title", default="")
    pages_elem = root.find("number-of-pages")
    page_count = 0
    if pages_elem is not None:
        # An empty value counts as zero pages, like a missing element
        value = pages_elem.get("value", "").strip()
        page_count = int(value) if value else 0
    return ThreadOverview(title=title, page_count=page_count)


class ThreadScraper:
    """
    Scrapes abload.de images out of forum.mods.de threads.

    The HTTP client and the deadline are passed in and shared by every stage,
    including the downloader. The caller owns both.

    Usage:
        deadline = Deadline(20.0)
        async with httpx.AsyncClient() as client:
            scraper = ThreadScraper(client, deadline, output_dir="images")
            results = await scraper.run(["219436", "220000"])
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        deadline: Deadline,
        output_dir: Union[str, Path] = ".",
        downloader: Optional[Downloader] = None,
        progress: bool = True,
    ):
        self.client = client
        self.deadline = deadline
        self.output_dir = Path(output_dir)
        self.downloader = downloader or Downloader(client, deadline, self.output_dir)
        self.progress = progress

    async def _get(self, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        return await self.deadline.run(self.client.get(url))

    async def fetch_overview(self, identifier: str) -> ThreadOverview:
        url = THREAD_URL.format(tid=identifier)
        try:
            response = await self._get(url)
        except FETCH_ERRORS as e:
            raise ScrapeError(f"error fetching thread {identifier}: {e}") from e

        try:
            return parse_overview(response.content)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ScrapeError(f"error parsing XML for thread {identifier}: {e}") from e

    async def validate_threads(self, thread_ids: Iterable[str]) -> List[ThreadDescriptor]:
        """
        Resolve each id to a ThreadDescriptor, skipping ids without pages.

        Order is preserved. The first network or parse error aborts the
        whole pass, even if other ids would have been fine.

        Raises:
            ScrapeError: on any transport, deadline or XML error
        """
        threads = []
        for identifier in thread_ids:
            overview = await self.fetch_overview(identifier)
            if overview.page_count > 0:
                thread = ThreadDescriptor.from_overview(
                    identifier, THREAD_URL.format(tid=identifier), overview
                )
                logger.info(
                    "Thread %s: '%s' (%d pages)",
                    identifier, thread.title, thread.page_count
                )
                threads.append(thread)
            else:
                logger.warning("Invalid thread id: %s. Skipping.", identifier)
        return threads

    def make_folders(self, threads: Iterable[ThreadDescriptor]) -> List[Path]:
        """Create the output folder of every thread; existing ones are kept."""
        names = [thread.folder_name for thread in threads]
        try:
            return ensure_folders(names, self.output_dir)
        except OSError as e:
            raise ScrapeError(f"error creating folders: {e}") from e

    async def fetch_pages(self, thread: ThreadDescriptor) -> List[str]:
        """
        Fetch pages 1..page_count of a thread as text.

        The response status is not checked; whatever body the board sends
        is scanned for images. Bodies are decoded by decode_page, so bytes
        in a non-UTF-8 page survive into the extracted URLs.

        Raises:
            ScrapeError: on any transport or deadline error
        """
        pages = []
        for page in range(1, thread.page_count + 1):
            url = PAGE_URL.format(tid=thread.identifier, page=page)
            try:
                response = await self._get(url)
            except FETCH_ERRORS as e:
                raise ScrapeError(
                    f"error getting page {page} of thread {thread.identifier}: {e}"
                ) from e
            pages.append(decode_page(response.content, response.charset_encoding))
        return pages

    async def run(self, thread_ids: Iterable[str]) -> List[DownloadResult]:
        """
        Main entry point: validate, create folders, fetch pages, download.

        Each thread's download task starts as soon as its pages have been
        scanned, so downloads overlap the page fetching of later threads.
        If a fatal error happens, tasks already running are cancelled and
        awaited before the error propagates.

        Returns:
            One DownloadResult per valid thread, in validation order
        """
        threads = await self.validate_threads(thread_ids)
        if not threads:
            logger.warning("No valid threads to scrape")
            return []

        self.make_folders(threads)

        tasks: List["asyncio.Task[DownloadResult]"] = []
        try:
            for thread in tqdm(
                threads, desc="Fetching threads", unit="thread", disable=not self.progress
            ):
                pages = await self.fetch_pages(thread)
                urls = filter_image_urls(extract_image_urls(pages))
                logger.info(
                    "Thread %s: %d images on %d pages",
                    thread.identifier, len(urls), len(pages)
                )
                tasks.append(asyncio.create_task(
                    self.downloader.download_thread(thread, urls)
                ))
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return list(await asyncio.gather(*tasks))


async def run(
    thread_ids: Iterable[str],
    output_dir: Union[str, Path] = ".",
    timeout: float = REQUEST_TIMEOUT,
    progress: bool = True,
) -> List[DownloadResult]:
    """
    Scrape the images of ``thread_ids`` into ``output_dir``.

    Creates the deadline and the HTTP client for this run and closes the
    client when the run ends, whatever the outcome.

    Raises:
        ScrapeError: if validation, folder creation or page fetching fails
    """
    deadline = Deadline(timeout)
    async with httpx.AsyncClient(
        timeout=None,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    ) as client:
        scraper = ThreadScraper(client, deadline, output_dir, progress=progress)
        return await scraper.run(thread_ids)
