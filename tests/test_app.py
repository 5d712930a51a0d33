import io
import os
import tempfile
import unittest

from app import app, base_name
from Text_Compression import encode


class TestCompressionRoutes(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        app.config.update(TESTING=True, UPLOAD_FOLDER=self.tmp.name)
        self.client = app.test_client()

    def tearDown(self):
        self.tmp.cleanup()

    def upload(self, route, data, filename, original_name=None):
        form = {"file": (io.BytesIO(data), filename)}
        if original_name is not None:
            form["originalName"] = original_name
        return self.client.post(route, data=form, content_type="multipart/form-data")

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {"status": "ok"})

    def test_compress_then_decompress(self):
        text = b"she sells sea shells by the sea shore"
        response = self.upload("/compress", text, "notes.txt", "notes.txt")
        self.assertEqual(response.status_code, 200)
        self.assertIn("notes.bin", response.headers["Content-Disposition"])
        self.assertEqual(response.headers["X-Original-Size"], str(len(text)))
        self.assertEqual(response.data, encode(text))

        response = self.upload("/decompress", response.data, "notes.bin", "notes.bin")
        self.assertEqual(response.status_code, 200)
        self.assertIn("notes.txt", response.headers["Content-Disposition"])
        self.assertEqual(response.data, text)

    def test_original_name_defaults_to_upload_name(self):
        response = self.upload("/compress", b"abc", "report.md")
        self.assertIn("report.bin", response.headers["Content-Disposition"])

    def test_empty_file_roundtrip(self):
        response = self.upload("/compress", b"", "empty.txt")
        self.assertEqual(response.status_code, 200)
        response = self.upload("/decompress", response.data, "empty.bin")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, b"")

    def test_missing_file(self):
        response = self.client.post("/compress", data={}, content_type="multipart/form-data")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "No file uploaded")

    def test_corrupt_container_is_a_client_error(self):
        response = self.upload("/decompress", b"\x00\x00", "broken.bin")
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertEqual(body["message"], "Invalid compressed file")
        self.assertTrue(body["error"].startswith("TruncatedContainer"))

    def test_temporary_files_are_removed(self):
        self.upload("/compress", b"hello", "a.txt")
        self.upload("/decompress", b"garbage", "b.bin")
        self.assertEqual(os.listdir(self.tmp.name), [])

    def test_upload_too_large(self):
        previous_limit = app.config["MAX_CONTENT_LENGTH"]
        app.config["MAX_CONTENT_LENGTH"] = 64
        try:
            response = self.upload("/compress", b"x" * 1024, "big.txt")
        finally:
            app.config["MAX_CONTENT_LENGTH"] = previous_limit
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.get_json()["message"], "File too large")


class TestBaseName(unittest.TestCase):

    def test_strips_last_extension(self):
        self.assertEqual(base_name("archive.tar.gz", "x"), "archive.tar")

    def test_strips_directories(self):
        self.assertEqual(base_name("../../etc/passwd", "x"), "etc_passwd")

    def test_fallback(self):
        self.assertEqual(base_name("", "compressed"), "compressed")
        self.assertEqual(base_name(None, "decompressed"), "decompressed")


if __name__ == "__main__":
    unittest.main()
