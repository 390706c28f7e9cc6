from __future__ import annotations

import os
import unittest

from srcmap.paths import basename, is_archive_embedded, relativize_path
from srcmap.types import EncodeOptions

CORE = "/home/me/proj/src/app/core.cljs"
JAR_CORE = "file:/home/me/.m2/cljs.jar!/cljs/core.cljs"


class TestPaths(unittest.TestCase):
    def test_is_archive_embedded(self):
        self.assertTrue(is_archive_embedded(JAR_CORE))
        self.assertFalse(is_archive_embedded(CORE))

    def test_basename(self):
        self.assertEqual(basename(CORE), "core.cljs")
        self.assertEqual(basename("C:\\proj\\core.cljs"), "core.cljs")
        self.assertEqual(basename("core.cljs"), "core.cljs")

    def test_source_map_path_is_used_verbatim(self):
        options = EncodeOptions(source_map_path="js", relpaths={CORE: "app/core.cljs"})
        self.assertEqual(relativize_path(CORE, options), "js/app/core.cljs")
        self.assertEqual(relativize_path(JAR_CORE, options), "js/cljs/core.cljs")

    def test_relative_to_map_directory(self):
        options = EncodeOptions(
            output_dir="/tmp/build/out",
            source_map="/tmp/build/out/main.js.map",
            relpaths={CORE: "app/core.cljs"},
        )
        self.assertEqual(relativize_path(CORE, options), "app/core.cljs")
        self.assertEqual(relativize_path(JAR_CORE, options), "cljs/core.cljs")

    def test_map_in_parent_of_output_dir(self):
        options = EncodeOptions(
            output_dir="/tmp/build/out",
            source_map="/tmp/build/main.js.map",
            relpaths={CORE: "app/core.cljs"},
        )
        self.assertEqual(relativize_path(CORE, options), "out/app/core.cljs")

    def test_missing_relpath_falls_back_to_basename(self):
        options = EncodeOptions(output_dir="/tmp/o", source_map="/tmp/o/main.js.map")
        self.assertEqual(relativize_path("/x/y/z.cljs", options), "z.cljs")

    def test_without_map_location_returns_rerooted_path(self):
        options = EncodeOptions(output_dir="out", relpaths={CORE: "app/core.cljs"})
        self.assertEqual(relativize_path(CORE, options), "out/app/core.cljs")

    @unittest.skipIf(os.name == "nt", "POSIX paths")
    def test_outside_map_directory_becomes_uri(self):
        options = EncodeOptions(
            output_dir="/srv/out",
            source_map="/tmp/build/main.js.map",
            relpaths={CORE: "app/core.cljs"},
        )
        self.assertEqual(relativize_path(CORE, options), "file:///srv/out/app/core.cljs")


if __name__ == "__main__":
    unittest.main()
