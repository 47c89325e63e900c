import io
import json
import unittest
from datetime import date

from fridgesmart_backend.config import INVENTORY_STORAGE_KEY
from fridgesmart_backend.services.inventory import demo_items, new_manual_item
from fridgesmart_backend.services.inventory_store import InventoryStore
from fridgesmart_backend.services.storage import (
    InMemoryBlobStorage,
    S3BlobStorage,
    S3BlobStorageSettings,
    StorageError,
)


class _RecordingStorage(InMemoryBlobStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes: list[str] = []

    def write(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().write(key, value)


class _BrokenStorage:
    def read(self, key):
        raise StorageError("backend offline")

    def write(self, key, value):
        raise StorageError("backend offline")


class _BlobS3Client:
    def __init__(self, objects):
        self.objects = objects

    def get_object(self, *, Bucket, Key):
        return {"Body": io.BytesIO(self.objects[(Bucket, Key)])}


class _FlakyStorage(InMemoryBlobStorage):
    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures

    def write(self, key: str, value: str) -> None:
        if self.failures:
            self.failures -= 1
            raise StorageError("backend offline")
        super().write(key, value)


class InventoryStoreTests(unittest.TestCase):
    def test_round_trip_through_backend(self):
        backend = InMemoryBlobStorage()
        store = InventoryStore(backend)
        store.replace(demo_items(date(2024, 12, 15)))
        store.append([new_manual_item("Basil")])

        reloaded = InventoryStore(backend)
        items = reloaded.load()

        self.assertEqual(items, store.items())
        self.assertEqual(
            [i.name for i in items][-2:], ["Almond Milk", "Basil"]
        )

    def test_blob_is_camel_case_array_under_fixed_key(self):
        backend = InMemoryBlobStorage()
        store = InventoryStore(backend)
        store.append([new_manual_item("Basil")])

        payload = json.loads(backend.read(INVENTORY_STORAGE_KEY))

        self.assertIsInstance(payload, list)
        self.assertEqual(payload[0]["name"], "Basil")
        self.assertIn("daysUntilExpiration", payload[0])
        self.assertEqual(INVENTORY_STORAGE_KEY, "fridgeSmartInventory")

    def test_missing_blob_starts_empty(self):
        store = InventoryStore(InMemoryBlobStorage())
        self.assertEqual(store.load(), [])
        self.assertEqual(len(store), 0)

    def test_malformed_blob_is_discarded(self):
        valid = new_manual_item("Basil").to_dict()
        blobs = [
            "{not json",
            json.dumps({"items": []}),
            json.dumps([valid, {"name": "half an item"}]),
        ]
        for blob in blobs:
            with self.subTest(blob=blob):
                store = InventoryStore(
                    InMemoryBlobStorage({INVENTORY_STORAGE_KEY: blob})
                )
                self.assertEqual(store.load(), [])

    def test_read_failure_starts_empty(self):
        store = InventoryStore(_BrokenStorage())
        self.assertEqual(store.load(), [])

    def test_write_failure_propagates(self):
        store = InventoryStore(_BrokenStorage())
        with self.assertRaises(StorageError):
            store.append([new_manual_item("Basil")])

    def test_failed_write_leaves_items_unchanged(self):
        backend = _FlakyStorage(failures=0)
        store = InventoryStore(backend)
        store.replace(demo_items())
        saved = backend.read(INVENTORY_STORAGE_KEY)

        backend.failures = 3
        with self.assertRaises(StorageError):
            store.append([new_manual_item("Basil")])
        with self.assertRaises(StorageError):
            store.replace([])
        with self.assertRaises(StorageError):
            store.remove("demo-1")

        self.assertEqual(
            [item.id for item in store.items()], [item.id for item in demo_items()]
        )
        self.assertEqual(backend.read(INVENTORY_STORAGE_KEY), saved)

    def test_retry_after_failed_append_keeps_one_copy(self):
        store = InventoryStore(_FlakyStorage())
        basil = new_manual_item("Basil")

        with self.assertRaises(StorageError):
            store.append([basil])
        store.append([basil])

        self.assertEqual([item.id for item in store.items()], [basil.id])

    def test_undecodable_s3_blob_is_discarded(self):
        client = _BlobS3Client(
            {("fridge", f"fridgesmart/{INVENTORY_STORAGE_KEY}.json"): b"\xff\xfe\x00garbage"}
        )
        store = InventoryStore(
            S3BlobStorage(S3BlobStorageSettings(bucket="fridge"), client=client)
        )
        self.assertEqual(store.load(), [])

    def test_remove_is_idempotent(self):
        backend = _RecordingStorage()
        store = InventoryStore(backend)
        store.replace(demo_items())
        backend.writes.clear()

        self.assertTrue(store.remove("demo-2"))
        self.assertFalse(store.remove("demo-2"))
        self.assertFalse(store.remove("missing"))

        self.assertEqual(len(backend.writes), 1)
        self.assertEqual(len(store), 4)
        self.assertIsNone(store.get("demo-2"))
        self.assertEqual(store.get("demo-1").name, "Organic Spinach")

    def test_every_change_persists(self):
        backend = _RecordingStorage()
        store = InventoryStore(backend)

        store.append([new_manual_item("Basil")])
        store.replace(demo_items())
        store.remove("demo-1")

        self.assertEqual(backend.writes, [INVENTORY_STORAGE_KEY] * 3)


if __name__ == "__main__":
    unittest.main()
