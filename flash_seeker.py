"""
Block-hash search of binary images inside a flash dump.

Both the flash dump and each candidate binary are cut into fixed-size blocks.
A candidate is found at a block-aligned offset when the headers of all its
blocks and the hashes of all but its last block match the flash blocks there.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from placement_types import Piece

logger = logging.getLogger(__name__)

HEADER_SIZE = 16
DEFAULT_BLOCK_SIZE = 512


class SeekError(Exception):
    """Base class for flash search errors."""


class ZeroFileError(SeekError):
    """The file holds nothing but zero bytes."""


@dataclass(frozen=True)
class BlockHash:
    """Digest and leading bytes of one block."""

    offset: int
    digest: bytes
    header: bytes
    size: int


def block_digest(block: bytes) -> bytes:
    return hashlib.blake2b(block, digest_size=8).digest()


def hash_blocks(data: bytes, block_size: int) -> list[BlockHash]:
    """Cut `data` into blocks of `block_size` bytes (the last one may be short)."""
    if block_size <= HEADER_SIZE:
        raise ValueError(f"Block size must be larger than {HEADER_SIZE}, got {block_size}")
    table = []
    for offset in range(0, len(data), block_size):
        block = data[offset:offset + block_size]
        table.append(BlockHash(offset, block_digest(block), block[:HEADER_SIZE], len(block)))
    return table


def locate_image(flash_table: list[BlockHash], image_table: list[BlockHash]) -> list[int]:
    """Offsets in the flash where the image's blocks line up."""
    count = len(image_table)
    if count == 0 or count > len(flash_table):
        return []

    found = []
    for i in range(len(flash_table) - count + 1):
        window = flash_table[i:i + count]
        if not all(
            flash.header[:len(image.header)] == image.header
            for flash, image in zip(window, image_table)
        ):
            continue
        # The last block is only checked by header: when the image size is not
        # a multiple of the block size, the flash block also holds padding.
        if all(
            flash.digest == image.digest
            for flash, image in zip(window[:-1], image_table[:-1])
        ):
            found.append(window[0].offset)
    return found


class FlashImage:
    """A flash dump, hashed once, that candidate binaries are searched in."""

    def __init__(self, data: bytes, block_size: int = DEFAULT_BLOCK_SIZE, name: str = "<flash>") -> None:
        if not data:
            raise SeekError(f"Flash image '{name}' is empty")
        self.name = name
        self.block_size = block_size
        self.size = len(data)
        self.table = hash_blocks(data, block_size)
        logger.info(
            "flash image '%s': %d bytes, %d blocks of %d bytes",
            name, self.size, len(self.table), block_size,
        )

    @classmethod
    def open(cls, path: str | Path, block_size: int = DEFAULT_BLOCK_SIZE) -> FlashImage:
        path = Path(path)
        return cls(path.read_bytes(), block_size, str(path))

    def seek_bytes(self, data: bytes, name: str = "<image>") -> list[int]:
        """Offsets where `data` occurs in the flash image."""
        if not data:
            raise SeekError(f"File '{name}' is empty")
        if not data.strip(b"\x00"):
            raise ZeroFileError(f"File is filled with 0: '{name}'")
        offsets = [
            offset
            for offset in locate_image(self.table, hash_blocks(data, self.block_size))
            if offset + len(data) <= self.size
        ]
        logger.info("seek '%s': %d hit(s)", name, len(offsets))
        return offsets

    def seek_image(self, path: str | Path) -> list[Piece]:
        """Every occurrence of the binary at `path`, as pieces labelled by path."""
        data = Path(path).read_bytes()
        return [Piece(str(path), len(data), offset) for offset in self.seek_bytes(data, str(path))]
