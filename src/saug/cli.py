"""CLI interface for saug."""

import asyncio
import logging

import click

from .scraper import REQUEST_TIMEOUT, ScrapeError, run


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Suppress per-request chatter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@click.command()
@click.argument("tids", nargs=-1)
@click.option(
    "-o", "--output-dir",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory that receives one folder per thread"
)
@click.option(
    "--timeout",
    default=REQUEST_TIMEOUT,
    type=float,
    show_default=True,
    help="Seconds the whole run may take"
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Hide the progress bar"
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(tids, output_dir, timeout, no_progress, verbose):
    """Download abload.de images posted in forum.mods.de threads.

    Pass one or more thread ids (TID). Images land in a folder named
    "<title> (<TID>)" per thread.

    Example: saug 219436 220000
    """
    if not tids:
        click.echo("Please provide thread IDs as arguments.")
        return

    _setup_logging(verbose)

    # Errors are reported, not signalled through the exit status
    try:
        asyncio.run(run(tids, output_dir=output_dir, timeout=timeout, progress=not no_progress))
    except ScrapeError as e:
        click.echo(f"Error: {e}")


if __name__ == '__main__':
    main()
