"""Async downloader for the images of a thread."""

import asyncio
import logging
from pathlib import Path
from typing import List, Union

import aiofiles
import httpx

from .models import DownloadResult, ThreadDescriptor
from .utils import Deadline, filename_from_url

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

# Anything that can go wrong for a single URL. None of these stop the thread.
DOWNLOAD_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError, asyncio.TimeoutError)


class Downloader:
    """Async downloader for thread images.

    The HTTP client and the deadline belong to the run and are shared by
    every thread; the downloader never closes them.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        deadline: Deadline,
        output_dir: Union[str, Path] = ".",
    ):
        """Initialize the downloader.

        Args:
            client: Shared HTTP client
            deadline: Run-wide deadline applied to every download
            output_dir: Directory that holds the per-thread folders
        """
        self.client = client
        self.deadline = deadline
        self.output_dir = Path(output_dir)

    async def download_file(self, url: str, output_path: Path) -> bool:
        """Download a file from URL to output path.

        The file is only created when the server answers 200. Any error is
        logged and reported as a failed download.

        Args:
            url: URL to download from
            output_path: Path to save the file

        Returns:
            True if successful, False otherwise
        """
        try:
            return await self.deadline.run(self._stream_to_file(url, output_path))
        except DOWNLOAD_ERRORS as e:
            logger.error("Error downloading %s: %s", url, e)
            return False

    async def _stream_to_file(self, url: str, output_path: Path) -> bool:
        async with self.client.stream("GET", url) as response:
            if response.status_code != httpx.codes.OK:
                logger.warning("Skipping %s: HTTP %d", url, response.status_code)
                return False

            async with aiofiles.open(output_path, "wb") as f:
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    await f.write(chunk)

        logger.debug("Saved %s", output_path)
        return True

    async def download_thread(
        self, thread: ThreadDescriptor, urls: List[str]
    ) -> DownloadResult:
        """Download all images of a thread, one after another.

        A failing URL never stops the remaining ones, and this coroutine
        always returns normally so the caller can join on it.

        Args:
            thread: The validated thread, its folder must already exist
            urls: Filtered image URLs in extraction order

        Returns:
            DownloadResult listing saved files and failed URLs
        """
        result = DownloadResult(thread=thread)
        thread_dir = self.output_dir / thread.folder_name

        for url in urls:
            filename = filename_from_url(url)
            if not filename:
                logger.error("Cannot derive a file name from %s", url)
                result.failed.append(url)
                continue

            output_path = thread_dir / filename
            if await self.download_file(url, output_path):
                result.saved.append(output_path)
            else:
                result.failed.append(url)

        logger.info(
            "Thread %s: downloaded %d/%d images to %s",
            thread.identifier, len(result.saved), result.attempted, thread_dir
        )
        return result
