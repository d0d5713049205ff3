"""Program image loader for the LC-3 virtual machine.

An image is a sequence of big-endian 16-bit words. The first word is the
origin address; every following word is stored consecutively from there.
"""

import io
import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .errors import LoadError
from .memory import Memory, MEMORY_SIZE


logger = logging.getLogger(__name__)


@dataclass
class LoadedImage:
    """Where an image landed in memory."""
    origin: int
    size: int
    truncated: bool = False
    path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "size": self.size,
            "truncated": self.truncated,
            "path": self.path,
        }


def load_image(memory: Memory, stream: BinaryIO, path: Optional[str] = None) -> LoadedImage:
    """Load one image from a binary stream into memory.

    Words that would run past 0xFFFF are dropped. A trailing odd byte is
    ignored.

    Raises:
        LoadError: If the stream does not contain an origin word
    """
    header = stream.read(2)
    if len(header) < 2:
        raise LoadError(
            f"Image has no origin word: {path or '<stream>'}",
            path=path,
        )
    (origin,) = struct.unpack(">H", header)

    max_words = MEMORY_SIZE - origin
    payload = stream.read(max_words * 2)
    word_count = len(payload) // 2
    words = struct.unpack(f">{word_count}H", payload[: word_count * 2])
    stored = memory.load_words(origin, words)

    truncated = word_count == max_words and bool(stream.read(1))
    logger.debug(
        "Loaded %d words at x%04X from %s%s",
        stored,
        origin,
        path or "<stream>",
        " (truncated at top of memory)" if truncated else "",
    )
    return LoadedImage(origin=origin, size=stored, truncated=truncated, path=path)


def load_image_bytes(memory: Memory, data: bytes, path: Optional[str] = None) -> LoadedImage:
    """Load an image held in memory."""
    return load_image(memory, io.BytesIO(data), path=path)


def load_image_file(memory: Memory, path: str) -> LoadedImage:
    """Open ``path`` and load it as an image.

    Raises:
        LoadError: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as stream:
            return load_image(memory, stream, path=path)
    except OSError as e:
        raise LoadError(f"Failed to load image: {path}", path=path) from e
