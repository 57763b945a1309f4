"""Self-describing container for cipher output.

A packed blob looks like this::

    +-----+---------+-----------+--------+-----------+--------+---
    | len | tag     | part1 len | part1  | part2 len | part2  | ...
    | 1B  | ASCII   | 4B BE     | bytes  | 4B BE     | bytes  |
    +-----+---------+-----------+--------+-----------+--------+---

The tag names the cipher that produced the blob, so a blob is never fed
to a cipher that did not write it. Parts are opaque to the codec.
"""

import struct
from typing import List, Optional, Sequence

from secretstash import FormatError, TagMismatchError

TAG_LENGTH = struct.Struct(">B")
PART_LENGTH = struct.Struct(">I")


def _encode_tag(tag: str) -> bytes:
    try:
        encoded = tag.encode("ascii")
    except UnicodeEncodeError:
        raise FormatError.from_context(f"Tag must be ASCII: {tag!r}")
    if not 0 < len(encoded) <= 255:
        raise FormatError.from_context(
            f"Tag must be 1 to 255 bytes long: {tag!r}"
        )
    return encoded


def pack(tag: str, parts: Sequence[bytes]) -> bytes:
    encoded_tag = _encode_tag(tag)
    chunks = [TAG_LENGTH.pack(len(encoded_tag)), encoded_tag]
    for part in parts:
        part = bytes(part)
        chunks.append(PART_LENGTH.pack(len(part)))
        chunks.append(part)
    return b"".join(chunks)


def peek_tag(blob: bytes) -> Optional[str]:
    """Return the tag a blob claims to carry, or None if unreadable."""
    if len(blob) < TAG_LENGTH.size:
        return None
    (length,) = TAG_LENGTH.unpack_from(blob)
    raw = blob[TAG_LENGTH.size:TAG_LENGTH.size + length]
    if length == 0 or len(raw) != length:
        return None
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError:
        return None


def unpack(tag: str, blob: bytes) -> List[bytes]:
    encoded_tag = _encode_tag(tag)
    blob = bytes(blob)
    header = TAG_LENGTH.pack(len(encoded_tag)) + encoded_tag
    if not blob.startswith(header):
        raise TagMismatchError.from_context(tag, peek_tag(blob))

    parts = []
    offset = len(header)
    while offset < len(blob):
        if len(blob) - offset < PART_LENGTH.size:
            raise FormatError.from_context(
                f"Truncated length field at offset {offset}"
            )
        (length,) = PART_LENGTH.unpack_from(blob, offset)
        offset += PART_LENGTH.size
        if length > len(blob) - offset:
            raise FormatError.from_context(
                f"Part {len(parts)} declares {length} bytes, "
                f"only {len(blob) - offset} left"
            )
        parts.append(blob[offset:offset + length])
        offset += length
    return parts
