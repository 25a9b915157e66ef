import unittest
from unittest.mock import patch

from botocore.exceptions import ClientError

from gallery.exceptions import MediaStoreError, UnsupportedFormatError
from gallery.storage import (
    InMemoryMediaStore,
    S3MediaStore,
    derive_public_id,
    file_extension,
)

FORMATS = ["jpg", "jpeg", "png"]


class DerivePublicIdTests(unittest.TestCase):
    def test_strips_extension_and_adds_folder(self):
        url = "https://res.example.com/demo/image/upload/v1712/gallery/k2xq9.jpg"
        self.assertEqual(derive_public_id(url, "gallery"), "gallery/k2xq9")

    def test_ignores_query_string(self):
        url = "https://media.example.test/gallery/abc.png?v=2"
        self.assertEqual(derive_public_id(url, "gallery"), "gallery/abc")

    def test_strips_from_first_dot(self):
        url = "https://media.example.test/gallery/abc.thumb.png"
        self.assertEqual(derive_public_id(url, "photos"), "photos/abc")

    def test_file_extension(self):
        self.assertEqual(file_extension("Holiday.JPEG"), "jpeg")
        self.assertEqual(file_extension("noext"), "")


class InMemoryMediaStoreTests(unittest.TestCase):
    def test_upload_and_delete(self):
        media = InMemoryMediaStore()
        stored = media.upload(
            b"data", filename="a.png", folder="gallery", allowed_formats=FORMATS
        )
        self.assertTrue(stored.public_id.startswith("gallery/"))
        self.assertEqual(stored.url, f"{media.base_url}/{stored.public_id}.png")
        self.assertEqual(len(media.objects), 1)

        media.delete(stored.public_id)
        self.assertEqual(media.objects, {})
        self.assertEqual(media.deleted, [stored.public_id])

    def test_upload_rejects_disallowed_format(self):
        media = InMemoryMediaStore()
        with self.assertRaises(UnsupportedFormatError):
            media.upload(
                b"data", filename="a.gif", folder="gallery", allowed_formats=FORMATS
            )
        self.assertEqual(media.objects, {})


@patch("gallery.storage.boto3.client")
class S3MediaStoreTests(unittest.TestCase):
    def _store(self, **kwargs):
        params = {"bucket": "photos", "region": "eu-west-1"}
        params.update(kwargs)
        return S3MediaStore(**params)

    def test_upload_puts_object_under_folder(self, mock_client_factory):
        client = mock_client_factory.return_value
        store = self._store(public_base_url="https://cdn.example.com/")

        stored = store.upload(
            b"\x89PNG",
            filename="cat.png",
            folder="gallery",
            allowed_formats=FORMATS,
        )

        kwargs = client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "photos")
        self.assertEqual(kwargs["Key"], f"{stored.public_id}.png")
        self.assertEqual(kwargs["ContentType"], "image/png")
        self.assertTrue(stored.public_id.startswith("gallery/"))
        self.assertEqual(stored.url, f"https://cdn.example.com/{stored.public_id}.png")

    def test_public_url_fallbacks(self, mock_client_factory):
        self.assertEqual(
            self._store().public_url("gallery/x.png"),
            "https://photos.s3.eu-west-1.amazonaws.com/gallery/x.png",
        )
        self.assertEqual(
            self._store(endpoint="http://minio:9000").public_url("gallery/x.png"),
            "http://minio:9000/photos/gallery/x.png",
        )

    def test_upload_rejects_disallowed_format_before_remote_call(
        self, mock_client_factory
    ):
        client = mock_client_factory.return_value
        with self.assertRaises(UnsupportedFormatError):
            self._store().upload(
                b"GIF89a", filename="a.gif", folder="gallery", allowed_formats=FORMATS
            )
        client.put_object.assert_not_called()

    def test_upload_wraps_provider_errors(self, mock_client_factory):
        client = mock_client_factory.return_value
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        with self.assertRaises(MediaStoreError) as ctx:
            self._store().upload(
                b"x", filename="a.jpg", folder="gallery", allowed_formats=FORMATS
            )
        self.assertIn("denied", ctx.exception.details)

    def test_delete_removes_only_matching_keys(self, mock_client_factory):
        client = mock_client_factory.return_value
        client.list_objects_v2.return_value = {
            "Contents": [
                {"Key": "gallery/abc.png"},
                {"Key": "gallery/abcdef.png"},
            ]
        }
        self._store().delete("gallery/abc")

        client.list_objects_v2.assert_called_once_with(
            Bucket="photos", Prefix="gallery/abc"
        )
        client.delete_object.assert_called_once_with(
            Bucket="photos", Key="gallery/abc.png"
        )

    def test_delete_unknown_public_id_is_noop(self, mock_client_factory):
        client = mock_client_factory.return_value
        client.list_objects_v2.return_value = {}
        self._store().delete("gallery/missing")
        client.delete_object.assert_not_called()

    def test_delete_wraps_provider_errors(self, mock_client_factory):
        client = mock_client_factory.return_value
        client.list_objects_v2.side_effect = ClientError(
            {"Error": {"Code": "500", "Message": "boom"}}, "ListObjectsV2"
        )
        with self.assertRaises(MediaStoreError):
            self._store().delete("gallery/abc")


if __name__ == "__main__":
    unittest.main()
