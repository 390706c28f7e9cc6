from __future__ import annotations

"""Relativization of source paths written into a map's `sources` array.

Two kinds of paths show up:
- Archive-embedded paths such as `file:/m2/lib.jar!/cljs/core.cljs`. These are
  re-rooted under the configured output location.
- Plain filesystem paths, which are placed under the output location through
  `relpaths` and then made relative to the directory holding the map file.
"""

import os
from pathlib import Path, PurePosixPath

from .types import EncodeOptions

ARCHIVE_SEPARATOR = ".jar!/"


def is_archive_embedded(path: str) -> bool:
    return ARCHIVE_SEPARATOR in path


def basename(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def relativize_path(path: str, options: EncodeOptions) -> str:
    """Turn a registered source path into the string stored in `sources`.

    With `source_map_path` set the re-rooted path is returned as-is. Otherwise
    it is made relative to the parent directory of `options.source_map`; paths
    outside that directory come back as absolute `file://` URIs.
    """

    base = options.source_map_path or options.output_dir or ""

    if is_archive_embedded(path):
        bare = base + path.split(ARCHIVE_SEPARATOR[:-1], 1)[1]
    else:
        rel = options.relpaths.get(path) or basename(path)
        bare = f"{base}/{rel}"

    if options.source_map_path or not options.source_map:
        return bare

    target = Path(os.path.abspath(bare))
    parent = Path(os.path.abspath(options.source_map)).parent
    if target.is_relative_to(parent):
        return PurePosixPath(*target.relative_to(parent).parts).as_posix()
    return target.as_uri()
