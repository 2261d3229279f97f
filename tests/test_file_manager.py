import os
import shutil
import tarfile
import tempfile
import time
import unittest
from unittest.mock import patch

from rustdeb.utils.file_manager import _safe_join, create_tar_xz, list_archive, list_tree


class TestFileManager(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.source = os.path.join(self.test_dir, "vendor")
        os.makedirs(os.path.join(self.source, "b-crate", "src"))
        os.makedirs(os.path.join(self.source, "a-crate"))
        with open(os.path.join(self.source, "a-crate", "Cargo.toml"), "w") as f:
            f.write('[package]\nname = "a-crate"\n')
        with open(os.path.join(self.source, "b-crate", "src", "lib.rs"), "w") as f:
            f.write("pub fn b() {}\n")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_safe_join_rejects_traversal(self):
        self.assertEqual(_safe_join("/tmp/base", "a/b"), "/tmp/base/a/b")
        with self.assertRaises(IOError):
            _safe_join("/tmp/base", "../etc/passwd")

    def test_list_tree_is_sorted(self):
        self.assertEqual(list_tree(self.source), [
            "a-crate",
            os.path.join("a-crate", "Cargo.toml"),
            "b-crate",
            os.path.join("b-crate", "src"),
            os.path.join("b-crate", "src", "lib.rs"),
        ])

    def test_archive_members_are_normalized(self):
        archive = os.path.join(self.test_dir, "out", "bundle.tar.xz")
        create_tar_xz(self.source, archive, arcname="vendor")
        self.assertFalse(os.path.exists(archive + ".tmp"))
        self.assertEqual(list_archive(archive), [
            "vendor",
            "vendor/a-crate",
            "vendor/a-crate/Cargo.toml",
            "vendor/b-crate",
            "vendor/b-crate/src",
            "vendor/b-crate/src/lib.rs",
        ])
        with tarfile.open(archive, "r:xz") as tar:
            for member in tar.getmembers():
                self.assertEqual((member.uid, member.gid, member.mtime), (0, 0, 0))
                self.assertEqual(member.uname, "root")

    def test_archive_is_reproducible(self):
        first = os.path.join(self.test_dir, "first.tar.xz")
        second = os.path.join(self.test_dir, "second.tar.xz")
        create_tar_xz(self.source, first, arcname="vendor")
        later = time.time() + 3600
        for rel_path in list_tree(self.source):
            os.utime(os.path.join(self.source, rel_path), (later, later))
        create_tar_xz(self.source, second, arcname="vendor")
        with open(first, "rb") as a, open(second, "rb") as b:
            self.assertEqual(a.read(), b.read())

    @patch("rustdeb.utils.file_manager.tarfile.open", side_effect=tarfile.TarError("disk full"))
    def test_failed_archive_leaves_nothing_behind(self, mock_open):
        archive = os.path.join(self.test_dir, "bundle.tar.xz")
        with self.assertRaises(tarfile.TarError):
            create_tar_xz(self.source, archive, arcname="vendor")
        self.assertFalse(os.path.exists(archive))
        self.assertFalse(os.path.exists(archive + ".tmp"))


if __name__ == "__main__":
    unittest.main()
