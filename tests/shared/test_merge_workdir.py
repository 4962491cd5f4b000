import os
import tempfile
from unittest import TestCase

from roundtrip.shared.merge import merge_files
from roundtrip.shared.workdir import working_directory


class TestMergeFiles(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_merge_preserves_given_order(self):
        a = self._write("a", b"first-")
        b = self._write("b", b"second-")
        c = self._write("c", b"third")
        out = os.path.join(self.tmp.name, "out")

        written = merge_files([c, a, b], out)

        self.assertEqual([5, 6, 7], written)
        with open(out, "rb") as f:
            self.assertEqual(b"thirdfirst-second-", f.read())

    def test_merge_nothing_creates_empty_output(self):
        out = os.path.join(self.tmp.name, "out")
        self.assertEqual([], merge_files([], out))
        self.assertEqual(0, os.path.getsize(out))

    def test_missing_fragment_aborts_merge(self):
        a = self._write("a", b"first")
        missing = os.path.join(self.tmp.name, "missing")
        out = os.path.join(self.tmp.name, "out")

        with self.assertRaises(OSError) as ctx:
            merge_files([a, missing, a], out)

        self.assertIn("missing", str(ctx.exception))
        # Partial output is left behind.
        with open(out, "rb") as f:
            self.assertEqual(b"first", f.read())

    def test_unwritable_output_raises(self):
        a = self._write("a", b"first")
        with self.assertRaises(OSError):
            merge_files([a], os.path.join(self.tmp.name, "no", "such", "dir", "out"))


class TestWorkingDirectory(TestCase):
    def test_removed_after_success(self):
        with working_directory() as workdir:
            self.assertTrue(os.path.isdir(workdir))
            with open(os.path.join(workdir, "part_0.bin"), "wb") as f:
                f.write(b"data")
        self.assertFalse(os.path.exists(workdir))

    def test_removed_after_exception(self):
        with self.assertRaises(RuntimeError):
            with working_directory() as workdir:
                os.makedirs(os.path.join(workdir, "nested"))
                raise RuntimeError("boom")
        self.assertFalse(os.path.exists(workdir))

    def test_explicit_path_is_created_and_removed(self):
        with tempfile.TemporaryDirectory() as parent:
            path = os.path.join(parent, "temp_data")
            with working_directory(path) as workdir:
                self.assertEqual(os.path.abspath(path), workdir)
                self.assertTrue(os.path.isdir(workdir))
            self.assertFalse(os.path.exists(path))

    def test_existing_directory_keeps_its_files(self):
        with tempfile.TemporaryDirectory() as parent:
            precious = os.path.join(parent, "precious.txt")
            with open(precious, "wb") as f:
                f.write(b"keep me")

            with working_directory(parent) as workdir:
                self.assertNotEqual(os.path.abspath(parent), workdir)
                self.assertEqual(os.path.abspath(parent), os.path.dirname(workdir))
                with open(os.path.join(workdir, "part_0.bin"), "wb") as f:
                    f.write(b"data")

            self.assertFalse(os.path.exists(workdir))
            with open(precious, "rb") as f:
                self.assertEqual(b"keep me", f.read())
            self.assertEqual(["precious.txt"], os.listdir(parent))
