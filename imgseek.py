"""
Command line entry point: find binaries in a flash image and draw the map.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from flash_seeker import DEFAULT_BLOCK_SIZE, FlashImage, SeekError
from map_render import GridRenderer

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    add_completion=False,
    help="Locate binaries inside a flash image and draw where they sit.",
)


def seek_binary(flash: FlashImage, binary: Path, renderer: GridRenderer) -> int:
    """Search one binary, add every hit to the map and report it in one block."""
    pieces = flash.seek_image(binary)
    name = escape(str(binary))
    if not pieces:
        console.print(f"[bold]➜ '{name}' not found in flash image...[/]", soft_wrap=True)
        return 0

    lines = [f"[bold]➜ '{name}' found in flash image:[/]"]
    for piece in pieces:
        lines.append(f"\tfrom {piece.start:#010x} to {piece.end:#010x}")
        renderer.add(piece)
    console.print("\n".join(lines), soft_wrap=True)
    return len(pieces)


def seek_all(flash: FlashImage, binaries: List[Path], renderer: GridRenderer) -> int:
    """One worker per binary; returns the total number of hits."""
    with ThreadPoolExecutor(max_workers=max(1, len(binaries))) as pool:
        futures = [pool.submit(seek_binary, flash, binary, renderer) for binary in binaries]
        return sum(future.result() for future in futures)


@app.command()
def main(
    image: Path = typer.Option(..., "--image", "-i", help="The flash image to search in"),
    binaries: List[Path] = typer.Option(
        ..., "--binaries", "-b", help="Binary to search for (repeat, or list several after it)"
    ),
    more_binaries: Optional[List[Path]] = typer.Argument(
        None, metavar="[BIN]...", help="More binaries to search for", show_default=False
    ),
    bsize: int = typer.Option(DEFAULT_BLOCK_SIZE, "--bsize", help="Block size used for hashing"),
    vscale: Optional[int] = typer.Option(
        None, "--vscale", min=1, help="Vertical magnification (default: fit terminal)"
    ),
    hscale: Optional[int] = typer.Option(
        None, "--hscale", min=1, help="Horizontal magnification (default: fit terminal)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress"),
) -> None:
    """Find every binary in the flash image and print the placement map."""
    binaries = list(binaries) + list(more_binaries or [])
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        flash = FlashImage.open(image, bsize)
        renderer = GridRenderer(flash.size, vertical_scale=vscale, horizontal_scale=hscale)
        hits = seek_all(flash, binaries, renderer)
    except (SeekError, OSError, ValueError) as e:
        console.print(f"[bold red]error:[/] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=1)

    logger.info("%d hit(s) for %d binaries", hits, len(binaries))
    if not renderer.is_empty():
        print(renderer.display(), end="")


if __name__ == "__main__":
    app()
