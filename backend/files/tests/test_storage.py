import hashlib
import os
import shutil
import tempfile

from django.test import SimpleTestCase, override_settings

from files.exceptions import ContentMissingError, InvalidInputError, StorageWriteError
from files.storage import ContentStore, validate_sha256


def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


class TestContentStore(SimpleTestCase):
    """
    ContentStore against a throwaway directory:
        - sharded "<hash[:2]>/<hash>" layout, shards created on demand
        - idempotent writes
        - ContentMissingError / StorageWriteError / malformed hashes
    """

    def setUp(self):
        self.root = tempfile.mkdtemp(prefix="store_")
        self.addCleanup(lambda: shutil.rmtree(self.root, ignore_errors=True))
        self.store = ContentStore(root=self.root)

    def test_location_is_sharded_by_first_two_hex_chars(self):
        h = sha256_bytes(b"layout")
        self.assertEqual(ContentStore.location_for(h), f"{h[:2]}/{h}")
        self.assertEqual(ContentStore.location_for(h.upper()), f"{h[:2]}/{h}")

    def test_write_creates_shard_and_returns_location(self):
        data = b"hello content store"
        h = sha256_bytes(data)

        location = self.store.write(h, data)

        self.assertEqual(location, f"{h[:2]}/{h}")
        self.assertTrue(os.path.isdir(os.path.join(self.root, h[:2])))
        self.assertEqual(self.store.read(location), data)

    def test_write_is_idempotent(self):
        data = b"same bytes twice"
        h = sha256_bytes(data)

        first = self.store.write(h, data)
        second = self.store.write(h, data)

        self.assertEqual(first, second)
        shard = os.path.join(self.root, h[:2])
        # exactly one object, no leftover temp files
        self.assertEqual(os.listdir(shard), [h])
        self.assertEqual(self.store.read(first), data)

    def test_read_returns_bytes_matching_hash(self):
        data = os.urandom(64 * 1024)
        h = sha256_bytes(data)
        location = self.store.write(h, data)
        self.assertEqual(sha256_bytes(self.store.read(location)), h)

    def test_read_missing_location_raises_content_missing(self):
        h = sha256_bytes(b"never written")
        with self.assertRaises(ContentMissingError):
            self.store.read(ContentStore.location_for(h))

    def test_write_failure_raises_storage_write_error(self):
        # a regular file where the root directory should be: every mkdir below it fails
        blocker = os.path.join(self.root, "not-a-dir")
        with open(blocker, "wb") as fh:
            fh.write(b"x")
        store = ContentStore(root=blocker)

        data = b"cannot land"
        with self.assertRaises(StorageWriteError):
            store.write(sha256_bytes(data), data)

    def test_malformed_hash_is_rejected(self):
        for bad in ("", "abc", "../" + "a" * 61, "g" * 64):
            with self.assertRaises(InvalidInputError):
                ContentStore.location_for(bad)
        self.assertEqual(validate_sha256(" " + "A" * 64 + " "), "a" * 64)

    def test_root_defaults_to_settings(self):
        with override_settings(FILE_VAULT={"STORAGE_ROOT": self.root}):
            store = ContentStore()
            data = b"settings root"
            location = store.write(sha256_bytes(data), data)
            self.assertTrue(os.path.exists(os.path.join(self.root, location)))

    def test_open_reports_clobbered_paths_as_content_missing(self):
        data = b"clobbered"
        h = sha256_bytes(data)
        location = self.store.write(h, data)

        # object replaced by a directory
        os.remove(self.store.path(location))
        os.mkdir(self.store.path(location))
        with self.assertRaises(ContentMissingError):
            self.store.open(location)

        # shard replaced by a regular file
        shutil.rmtree(os.path.join(self.root, h[:2]))
        with open(os.path.join(self.root, h[:2]), "wb") as fh:
            fh.write(b"x")
        with self.assertRaises(ContentMissingError):
            self.store.open(location)
