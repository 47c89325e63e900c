import io
import unittest

from werkzeug.datastructures import FileStorage

from fridgesmart_backend.services.uploads import read_image_upload


def _upload(data: bytes, filename: str, content_type: str | None = None) -> FileStorage:
    return FileStorage(
        stream=io.BytesIO(data), filename=filename, content_type=content_type
    )


class ReadImageUploadTests(unittest.TestCase):
    def test_reads_image(self):
        upload = read_image_upload(_upload(b"png-data", "../fridge shelf.png", "image/png"))

        self.assertEqual(upload.image_bytes, b"png-data")
        self.assertEqual(upload.mime_type, "image/png")
        self.assertEqual(upload.filename, "fridge_shelf.png")

    def test_guesses_type_from_filename(self):
        upload = read_image_upload(
            _upload(b"data", "photo.png", "application/octet-stream")
        )
        self.assertEqual(upload.mime_type, "image/png")

    def test_defaults_to_jpeg(self):
        upload = read_image_upload(_upload(b"data", "snapshot"))
        self.assertEqual(upload.mime_type, "image/jpeg")

    def test_rejections(self):
        cases = [
            _upload(b"data", ""),
            _upload(b"", "photo.jpg", "image/jpeg"),
            _upload(b"text", "notes.txt", "text/plain"),
        ]
        for upload in cases:
            with self.subTest(filename=upload.filename):
                with self.assertRaises(ValueError):
                    read_image_upload(upload)


if __name__ == "__main__":
    unittest.main()
