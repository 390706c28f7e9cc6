from __future__ import annotations

"""Loader for Bun's compact serialized source map layout.

Bun embeds source maps in standalone executables as:

    [header: u32 source_files_count, u32 map_bytes_length]
    [source_files_count x StringPointer -> source path]
    [source_files_count x StringPointer -> zstd-compressed source contents]
    [map_bytes_length bytes of VLQ mappings text]

The result is an ordinary v3 `SourceMap` that can be handed to the decoder.
"""

import zstandard as zstd

from .errors import FormatError
from .types import SerializedHeader, SourceMap, StringPointer


def load_serialized(data: bytes, *, file: str | None = None) -> SourceMap:
    if len(data) < SerializedHeader.SIZE:
        raise FormatError(f"Serialized source map too short: {len(data)} bytes")

    header = SerializedHeader.from_bytes(data)
    if header.source_files_count == 0:
        raise FormatError("Serialized source map declares no source files")

    names_start = SerializedHeader.SIZE
    names_size = header.source_files_count * StringPointer.SIZE
    contents_start = names_start + names_size
    contents_size = header.source_files_count * StringPointer.SIZE
    mappings_start = contents_start + contents_size
    mappings_end = mappings_start + header.map_bytes_length

    if mappings_end > len(data):
        raise FormatError(
            f"Serialized source map truncated: need {mappings_end} bytes, have {len(data)}"
        )

    sources: list[str] = []
    for i in range(header.source_files_count):
        ptr = StringPointer.from_bytes(data, names_start + i * StringPointer.SIZE)
        sources.append(ptr.slice_str(data))

    sources_content: list[str | None] = []
    dctx = zstd.ZstdDecompressor()
    for i in range(header.source_files_count):
        ptr = StringPointer.from_bytes(data, contents_start + i * StringPointer.SIZE)
        compressed = ptr.slice(data)
        if not compressed:
            sources_content.append(None)
            continue
        try:
            decompressed = dctx.decompress(compressed)
        except zstd.ZstdError as e:
            raise FormatError(f"Cannot decompress contents of {sources[i]!r}: {e}") from e
        sources_content.append(decompressed.decode("utf-8", errors="replace"))

    try:
        mappings = data[mappings_start:mappings_end].decode("ascii")
    except UnicodeDecodeError as e:
        raise FormatError(f"Serialized mappings are not ASCII: {e}") from e

    return SourceMap(
        file=file,
        sources=sources,
        names=[],
        mappings=mappings,
        sources_content=sources_content,
    )
