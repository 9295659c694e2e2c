from __future__ import annotations

from typing import Union

from .constants import METADATA_CAPACITY


class BoundedBuffer:
    """Byte sink with a fixed capacity that truncates instead of failing.

    ``capacity`` counts a trailing terminator, so at most ``capacity - 1``
    bytes of content are kept. Once an append has been cut short the
    ``truncated`` flag stays set and later appends add nothing.
    """

    def __init__(self, capacity: int = METADATA_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._buf = bytearray()
        self.truncated = False

    @property
    def used(self) -> int:
        return len(self._buf)

    @property
    def available(self) -> int:
        return (self.capacity - 1) - len(self._buf)

    def append(self, data: Union[str, bytes]) -> bool:
        """Append as much of ``data`` as fits; return False if any of it was dropped."""
        if isinstance(data, str):
            # Undecodable bytes from paths and argv round-trip to their raw form
            data = data.encode("utf-8", "surrogateescape")
        avail = self.available
        if len(data) > avail:
            self._buf += data[:avail]
            self.truncated = True
            return False
        self._buf += data
        return True

    def getvalue(self) -> bytes:
        return bytes(self._buf)


def build_file_metadata(name: str, description: str, size: int, *, capacity: int = METADATA_CAPACITY) -> BoundedBuffer:
    """Format the Filename/Description/Size blob stored ahead of an attached file."""
    buf = BoundedBuffer(capacity)
    for part in ("Filename: ", name, "\nDescription: ", description, "\nSize: ", str(size), " bytes"):
        buf.append(part)
    return buf
