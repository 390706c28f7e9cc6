from __future__ import annotations

"""Command-line interface for srcmap.

Reads v3 `.map` files (or Bun serialized source map blobs with
`--serialized`) and decodes, re-encodes, merges, inverts or queries them.
"""

import argparse
import sys
from pathlib import Path

from .decoder import decode, decode_reverse
from .encoder import encode_map
from .errors import SrcmapError
from .index import ForwardIndex, ReverseIndex
from .invert import invert
from .merge import merge
from .serialized import load_serialized
from .types import EncodeOptions, SourceMap


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srcmap",
        description="Decode, encode, merge and invert v3 source maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    srcmap decode app.js.map             # generated -> original listing
    srcmap decode app.js.map --reverse   # original -> generated listing
    srcmap encode app.js.map -o out.map  # decode and re-encode
    srcmap merge core.js.map app.js.map  # compose two compilation stages
    srcmap lookup app.js.map 0 42        # origins of generated line 0, col 42
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Report details on stderr")
    parser.add_argument(
        "--serialized",
        action="store_true",
        help="Inputs are Bun serialized source maps instead of JSON",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decode", help="List every mapping")
    p.add_argument("map", help="Source map file")
    p.add_argument("--reverse", action="store_true", help="List original -> generated")

    p = sub.add_parser("encode", help="Decode and re-encode a map")
    p.add_argument("map", help="Source map file")
    _add_output_args(p)

    p = sub.add_parser("merge", help="Merge two maps from successive compilation stages")
    p.add_argument("first", help="Map from original sources to the intermediate file")
    p.add_argument("second", help="Map from the intermediate file to the final output")
    p.add_argument("--intermediate", help="Source name of the intermediate file in SECOND")
    _add_output_args(p)

    p = sub.add_parser("invert", help="List generated -> original, built from the reverse index")
    p.add_argument("map", help="Source map file")

    p = sub.add_parser("lookup", help="Show the origins of a generated position")
    p.add_argument("map", help="Source map file")
    p.add_argument("line", type=int, help="Generated line (0-based)")
    p.add_argument("column", type=int, help="Generated column (0-based)")

    return parser


def _add_output_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("-o", "--output", help="Write the map here instead of stdout")
    p.add_argument("--pretty", action="store_true", help="Pretty-print the JSON")


def _load(path: str, *, serialized: bool) -> SourceMap:
    data = Path(path).read_bytes()
    if serialized:
        return load_serialized(data)
    return SourceMap.loads(data)


def _format_name(name: str | None) -> str:
    return f" ({name})" if name is not None else ""


def _print_forward(index: ForwardIndex) -> None:
    for line, column, pos in index.entries():
        print(f"{line}:{column} -> {pos.source}:{pos.line}:{pos.column}{_format_name(pos.name)}")


def _print_reverse(index: ReverseIndex) -> None:
    for source, line, column, pos in index.entries():
        print(f"{source}:{line}:{column} -> {pos.line}:{pos.column}{_format_name(pos.name)}")


def _emit(source_map: SourceMap, output: str | None, *, pretty: bool) -> None:
    text = source_map.dumps(pretty=pretty)
    if output is None:
        print(text)
        return
    Path(output).write_text(text + "\n", encoding="utf-8")
    print(f"Wrote {output}")


def _run(args: argparse.Namespace) -> int:
    if args.command == "decode":
        source_map = _load(args.map, serialized=args.serialized)
        if args.reverse:
            _print_reverse(decode_reverse(source_map))
        else:
            _print_forward(decode(source_map))
        return 0

    if args.command == "invert":
        _print_forward(invert(decode_reverse(_load(args.map, serialized=args.serialized))))
        return 0

    if args.command == "lookup":
        origins = decode(_load(args.map, serialized=args.serialized)).lookup(args.line, args.column)
        if not origins:
            print(f"No mapping for {args.line}:{args.column}", file=sys.stderr)
            return 1
        for pos in origins:
            print(f"{pos.source}:{pos.line}:{pos.column}{_format_name(pos.name)}")
        return 0

    if args.command == "encode":
        source_map = _load(args.map, serialized=args.serialized)
        options = EncodeOptions(
            file=source_map.file,
            sources_content=source_map.sources_content,
            lines=source_map.line_count,
            verbatim_sources=True,
        )
        _emit(encode_map(decode(source_map), options), args.output, pretty=args.pretty)
        return 0

    if args.command == "merge":
        first = _load(args.first, serialized=args.serialized)
        second = _load(args.second, serialized=args.serialized)
        first_index = decode_reverse(first)
        merged = merge(first_index, decode_reverse(second), args.intermediate)

        if args.verbose:
            before = sum(1 for _ in first_index.entries())
            after = sum(1 for _ in merged.entries())
            print(f"  merged {before} mappings into {after}", file=sys.stderr)

        options = EncodeOptions(
            file=second.file,
            sources_content=first.sources_content,
            verbatim_sources=True,
        )
        _emit(encode_map(merged, options), args.output, pretty=args.pretty)
        return 0

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return _run(args)
    except (SrcmapError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
