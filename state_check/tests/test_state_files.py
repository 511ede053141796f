import os
import shutil
import tempfile
import unittest
import zipfile

from state_check.checker_lib.exceptions import StateCheckError, StateFileError
from state_check.checker_lib.state_files import (
    collect_pairs, is_state_file, load_state, read_state_text, state_name, write_state,
)

STATE = """<plist version="1.0">
<dict>
<key>Generation</key>
<real>4607182418800017408L</real>
</dict>
</plist>
"""


class TestStateNames(unittest.TestCase):

    def test_is_state_file(self):
        self.assertTrue(is_state_file("run.plist"))
        self.assertTrue(is_state_file("run.plist.zip"))
        self.assertTrue(is_state_file("run.zip"))
        self.assertFalse(is_state_file("run.txt"))

    def test_state_name(self):
        self.assertEqual(state_name("/a/b/run.plist"), "run")
        self.assertEqual(state_name("run.plist.zip"), "run")
        self.assertEqual(state_name("run.zip"), "run")
        self.assertEqual(state_name("run.v2.plist"), "run.v2")


class TestStateFiles(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def write(self, relative, content=STATE):
        path = os.path.join(self.test_dir, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def write_zip(self, relative, members):
        path = os.path.join(self.test_dir, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with zipfile.ZipFile(path, 'w') as archive:
            for name, content in members.items():
                archive.writestr(name, content)
        return path

    def test_load_plain_state(self):
        plist, warnings = load_state(self.write("run.plist"))
        self.assertEqual(plist, {"Generation": 1.0})
        self.assertEqual(warnings, [])

    def test_load_zipped_state(self):
        path = self.write_zip("run.plist.zip", {"run.plist": STATE})
        plist, _ = load_state(path)
        self.assertEqual(plist, {"Generation": 1.0})

    def test_zip_with_several_entries(self):
        path = self.write_zip("run.zip", {"a.plist": STATE, "b.plist": STATE})
        with self.assertRaises(StateFileError) as cm:
            read_state_text(path)
        self.assertIn("found 2", str(cm.exception))

    def test_corrupt_zip(self):
        path = self.write("broken.zip", "this is not an archive")
        with self.assertRaises(StateFileError):
            read_state_text(path)

    def test_missing_file(self):
        with self.assertRaises(StateCheckError) as cm:
            read_state_text(os.path.join(self.test_dir, "missing.plist"))
        self.assertEqual(cm.exception.path, os.path.join(self.test_dir, "missing.plist"))

    def test_not_utf8(self):
        path = os.path.join(self.test_dir, "binary.plist")
        with open(path, 'wb') as f:
            f.write(b'\xff\xfe\xfa')
        with self.assertRaises(StateFileError):
            read_state_text(path)

    def test_load_reports_parser_warnings(self):
        _, warnings = load_state(self.write("broken.plist", "<dict><string>orphan</string></dict>"))
        self.assertEqual(len(warnings), 1)

    def test_write_state_creates_directories(self):
        path = os.path.join(self.test_dir, "reports", "deep", "run-failed.plist")
        write_state(path, {"x": 0.5})
        plist, warnings = load_state(path)
        self.assertEqual(plist, {"x": 0.5})
        self.assertEqual(warnings, [])

    def test_collect_pairs(self):
        ref_dir = os.path.join(self.test_dir, "ref")
        cand_dir = os.path.join(self.test_dir, "cand")
        self.write("ref/a.plist")
        self.write("ref/b.plist.zip", "zipped")
        self.write("ref/notes.txt", "ignored")
        self.write("ref/sub/c.plist")
        self.write("ref/sub/d.plist")
        self.write("cand/a.plist")
        self.write("cand/b.plist")
        self.write("cand/sub/c.plist.zip", "zipped")

        pairs, missing = collect_pairs(ref_dir, cand_dir)

        self.assertEqual(pairs, [
            (os.path.join(ref_dir, "a.plist"), os.path.join(cand_dir, "a.plist")),
            (os.path.join(ref_dir, "b.plist.zip"), os.path.join(cand_dir, "b.plist")),
            (os.path.join(ref_dir, "sub", "c.plist"), os.path.join(cand_dir, "sub", "c.plist.zip")),
        ])
        self.assertEqual(missing, [os.path.join(ref_dir, "sub", "d.plist")])

    def test_collect_pairs_not_recursive(self):
        ref_dir = os.path.join(self.test_dir, "ref")
        cand_dir = os.path.join(self.test_dir, "cand")
        self.write("ref/a.plist")
        self.write("ref/sub/c.plist")
        self.write("cand/a.plist")

        pairs, missing = collect_pairs(ref_dir, cand_dir, recursive=False)

        self.assertEqual(len(pairs), 1)
        self.assertEqual(missing, [])


if __name__ == '__main__':
    unittest.main()
