from __future__ import annotations

import unittest

from srcmap.decoder import decode, decode_reverse
from srcmap.encoder import encode_map
from srcmap.index import ReverseIndex, SortedMap
from srcmap.invert import invert
from srcmap.merge import merge, merge_lines
from srcmap.types import EncodeOptions, GeneratedPosition, OriginalPosition, SourceMap


def _first_stage() -> ReverseIndex:
    # core.cljs -> out.js
    index = ReverseIndex(["core.cljs"])
    index.add("core.cljs", 0, 0, GeneratedPosition(0, 0))
    index.add("core.cljs", 0, 5, GeneratedPosition(0, 10, "foo"))
    index.add("core.cljs", 2, 1, GeneratedPosition(1, 0))
    return index


def _second_stage() -> ReverseIndex:
    # out.js -> main.js; nothing survives from out.js line 1
    index = ReverseIndex(["out.js"])
    index.add("out.js", 0, 0, GeneratedPosition(5, 2))
    index.add("out.js", 0, 10, GeneratedPosition(5, 20))
    index.add("out.js", 0, 10, GeneratedPosition(7, 1, "f"))
    return index


class TestMerge(unittest.TestCase):
    def test_splices_downstream_positions(self):
        merged = merge(_first_stage(), _second_stage())
        lines = merged["core.cljs"]
        self.assertEqual(lines[0][0], [GeneratedPosition(5, 2)])
        self.assertEqual(lines[0][5], [GeneratedPosition(5, 20, "foo"), GeneratedPosition(7, 1, "f")])

    def test_dropped_positions_are_absent(self):
        merged = merge(_first_stage(), _second_stage())
        self.assertNotIn(2, merged["core.cljs"])
        self.assertEqual(sum(len(cols) for cols in _first_stage()["core.cljs"].values()), 3)
        self.assertEqual(sum(len(cols) for cols in merged["core.cljs"].values()), 2)
        self.assertEqual(merged.lookup("core.cljs", 2, 1), [])

    def test_matches_manual_composition(self):
        first, second = _first_stage(), _second_stage()
        expected = set()
        for source, line, column, mid in first.entries():
            for final in second.lookup("out.js", mid.line, mid.column):
                expected.add((source, line, column, final.line, final.column))

        merged = merge(first, second, "out.js")
        actual = {(s, ln, col, pos.line, pos.column) for s, ln, col, pos in merged.entries()}
        self.assertEqual(actual, expected)

    def test_through_encoded_maps(self):
        first = encode_map(_first_stage(), EncodeOptions(file="out.js", verbatim_sources=True))
        second = encode_map(_second_stage(), EncodeOptions(file="main.js", verbatim_sources=True))

        merged = merge(decode_reverse(first), decode_reverse(second))
        final = decode(encode_map(merged, EncodeOptions(file="main.js", verbatim_sources=True)))

        self.assertEqual(final.lookup(5, 2), [OriginalPosition("core.cljs", 0, 0)])
        self.assertEqual(final.lookup(5, 20), [OriginalPosition("core.cljs", 0, 5, "foo")])
        self.assertEqual(final.lookup(7, 1), [OriginalPosition("core.cljs", 0, 5, "f")])

    def test_requires_intermediate_when_ambiguous(self):
        second = _second_stage()
        second.add("other.js", 0, 0, GeneratedPosition(0, 0))
        with self.assertRaises(ValueError):
            merge(_first_stage(), second)

    def test_unknown_intermediate_yields_empty_result(self):
        merged = merge(_first_stage(), _second_stage(), "missing.js")
        self.assertEqual(len(merged), 0)
        self.assertEqual(merged.sources, ["core.cljs"])

    def test_merge_lines(self):
        first = SortedMap([(0, SortedMap([(3, [GeneratedPosition(1, 1)])]))])
        second = SortedMap([(1, SortedMap([(1, [GeneratedPosition(9, 9)])]))])
        merged = merge_lines(first, second)
        self.assertEqual(merged[0][3], [GeneratedPosition(9, 9)])


class TestInvert(unittest.TestCase):
    def test_duality_with_decode(self):
        source_map = SourceMap(
            sources=["a.cljs", "b.cljs"],
            names=["x"],
            mappings="AAAA,CACA;;AACAA,ECCC;GDAA",
        )
        self.assertEqual(invert(decode_reverse(source_map)), decode(source_map))

    def test_fan_in_keeps_order(self):
        index = ReverseIndex(["a.cljs"])
        index.add("a.cljs", 1, 0, GeneratedPosition(3, 3))
        index.add("a.cljs", 0, 0, GeneratedPosition(3, 3, "n"))
        forward = invert(index)
        self.assertEqual(
            forward[3][3],
            [OriginalPosition("a.cljs", 0, 0, "n"), OriginalPosition("a.cljs", 1, 0)],
        )
        self.assertEqual(forward.sources, ["a.cljs"])

    def test_empty(self):
        self.assertEqual(len(invert(ReverseIndex())), 0)


class TestDeclaredSources(unittest.TestCase):
    def test_repeated_source_keeps_its_slot(self):
        index = ReverseIndex(["a.js", "a.js", "b.js"])
        self.assertEqual(index.sources, ["a.js", "a.js", "b.js"])
        self.assertEqual(index.source_index("a.js"), 0)
        self.assertEqual(index.source_index("b.js"), 2)

        forward = invert(index)
        self.assertEqual(forward.sources, ["a.js", "a.js", "b.js"])
        forward.add(0, 0, OriginalPosition("c.js", 0, 0))
        self.assertEqual(forward.source_index("c.js"), 3)


class TestSortedMap(unittest.TestCase):
    def test_iterates_by_key(self):
        m = SortedMap()
        for k in (5, 1, 3):
            m[k] = str(k)
        self.assertEqual(list(m), [1, 3, 5])
        del m[3]
        self.assertEqual(list(m.items()), [(1, "1"), (5, "5")])

    def test_custom_key(self):
        rank = {"z": 0, "a": 1}
        m = SortedMap([("a", 1), ("z", 2)], key=rank.__getitem__)
        self.assertEqual(list(m), ["z", "a"])
        del m["z"]
        self.assertEqual(list(m), ["a"])


if __name__ == "__main__":
    unittest.main()
