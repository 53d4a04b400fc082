"""
Data models for saug.

This module defines typed data structures for the thread metadata that flows
through the pipeline and for the outcome of a thread's download run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class ThreadOverview:
    """
    Metadata reported by the board's XML endpoint for one thread.

    Attributes:
        title: Thread title as sent by the board
        page_count: Value of the ``number-of-pages`` element (0 when absent)
    """
    title: str
    page_count: int = 0


@dataclass(frozen=True)
class ThreadDescriptor:
    """
    A thread that passed validation.

    Only the validator creates descriptors, and only for threads whose
    overview reports at least one page. Every later stage reads from it.

    Attributes:
        identifier: The thread id (TID) as given on the command line
        source_url: Metadata URL the thread was validated against
        page_count: Number of pages to fetch (always >= 1)
        title: Thread title
        folder_name: Output directory name, "<title> (<identifier>)"

    Example:
        thread = ThreadDescriptor.from_overview(
            "219436",
            "https://forum.mods.de/bb/xml/thread.php?TID=219436",
            ThreadOverview(title="Fotothread", page_count=3),
        )
        thread.folder_name  # "Fotothread (219436)"
    """
    identifier: str
    source_url: str
    page_count: int
    title: str
    folder_name: str

    @classmethod
    def from_overview(
        cls, identifier: str, source_url: str, overview: ThreadOverview
    ) -> "ThreadDescriptor":
        """Build the descriptor for a validated thread, deriving its folder name."""
        return cls(
            identifier=identifier,
            source_url=source_url,
            page_count=overview.page_count,
            title=overview.title,
            folder_name=f"{overview.title} ({identifier})",
        )


@dataclass
class DownloadResult:
    """Outcome of one thread's download task."""
    thread: ThreadDescriptor
    saved: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.saved) + len(self.failed)
