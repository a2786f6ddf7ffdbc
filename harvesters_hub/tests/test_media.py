import unittest
from unittest.mock import MagicMock

from harvesters_hub import media
from harvesters_hub.db import InMemoryDbClient, MediaKind, MediaRecord
from harvesters_hub.errors import NotFoundError, UpstreamError, ValidationError
from harvesters_hub.identity import Role
from harvesters_hub.schemas import UploadMetadata
from harvesters_hub.storage import IncomingFile, InMemoryStorageClient


def _metadata(**overrides):
    values = {
        "comment": "Sunday",
        "uploaderId": "cell-1",
        "uploaderRole": "cell",
        "uploaderName": "Cell One",
        "uploaderLogo": "https://example.test/logo.png",
    }
    values.update(overrides)
    return UploadMetadata(**values)


def _file(name, content_type):
    return IncomingFile(filename=name, content_type=content_type, data=b"bytes")


class MediaTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()

    def test_classify_media_kind(self):
        self.assertEqual(media.classify_media_kind("video/mp4"), MediaKind.VIDEO)
        self.assertEqual(media.classify_media_kind("image/png"), MediaKind.IMAGE)
        self.assertEqual(media.classify_media_kind(None), MediaKind.IMAGE)

    def test_upload_records_uploader(self):
        records = media.upload_media(
            self.db,
            self.storage,
            [_file("a.mov", "video/quicktime")],
            _metadata(),
            folder="test",
        )
        record = records[0]
        self.assertEqual(record.media_kind, MediaKind.VIDEO)
        self.assertEqual(record.uploader_role, Role.CELL)
        self.assertEqual(record.like_count, 0)
        self.assertEqual(record.liked_by, [])
        self.assertTrue(record.url.startswith(self.storage.base_url + "/test/"))

    def test_upload_validation(self):
        with self.assertRaises(ValidationError):
            media.upload_media(
                self.db, self.storage, [_file("a.jpg", "image/jpeg")],
                _metadata(uploaderLogo=""), folder="test",
            )
        with self.assertRaises(ValidationError):
            media.upload_media(
                self.db, self.storage, [_file("a.jpg", "image/jpeg")],
                _metadata(uploaderRole="pastor"), folder="test",
            )
        with self.assertRaises(ValidationError):
            media.upload_media(self.db, self.storage, [], _metadata(), folder="test")

    def test_partial_failure_keeps_earlier_posts(self):
        storage = MagicMock()
        storage.upload_bytes.side_effect = [
            "https://example.test/1.jpg",
            UpstreamError("Asset upload failed"),
        ]
        with self.assertRaises(UpstreamError):
            media.upload_media(
                self.db,
                storage,
                [_file("1.jpg", "image/jpeg"), _file("2.jpg", "image/jpeg")],
                _metadata(),
                folder="test",
            )
        self.assertEqual(
            [post.url for post in self.db.list_media_posts()],
            ["https://example.test/1.jpg"],
        )

    def test_toggle_keeps_count_equal_to_devices(self):
        post = self.db.create_media_post(
            MediaRecord(
                url="u",
                media_kind=MediaKind.IMAGE,
                caption="",
                uploader_id="x",
                uploader_role=Role.CAMPUS,
                uploader_name="n",
                uploader_logo="l",
            )
        )
        for device in ("a", "b", "c", "b"):
            media.toggle_like(self.db, post.id, device)
            self.assertEqual(post.like_count, len(post.liked_by))
        self.assertEqual(post.liked_by, ["a", "c"])

        self.assertEqual(media.toggle_like(self.db, post.id, "a"), (1, False))
        self.assertEqual(media.toggle_like(self.db, post.id, "a"), (2, True))

    def test_toggle_errors(self):
        with self.assertRaises(ValidationError):
            media.toggle_like(self.db, "x", None)
        with self.assertRaises(NotFoundError):
            media.toggle_like(self.db, "x", "device")
        with self.assertRaises(NotFoundError):
            media.get_post(self.db, "x")


if __name__ == "__main__":
    unittest.main()
