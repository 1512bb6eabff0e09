"""
이미지 / 첨부파일 업로드 테스트
"""
import re
from datetime import datetime
from unittest.mock import patch

from config import get_settings
from routers.upload import MB, build_storage_path, image_extension
from utils.content import storage_key_from_url

HOST = "cdn.example.com"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestUploadImage:
    """POST /upload/image 테스트"""

    def test_upload_image(self, client, storage, api_headers):
        response = client.post(
            "/upload/image",
            files={"file": ("photo.PNG", PNG, "image/png")},
            headers=api_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "이미지 업로드가 완료되었습니다."
        data = body["data"]
        assert data["filename"] == "photo.PNG"
        assert data["size"] == len(PNG)
        assert data["type"] == "image/png"
        assert data["uploadType"] == "image"
        assert re.fullmatch(r"\d{4}/\d{2}/\d{2}/image_\d+_[a-z0-9]{6}\.png", data["path"])

        key = f"post-images/{data['path']}"
        assert storage.uploaded[key] == (PNG, "image/png")
        # 게시글 삭제 시 본문 URL 에서 같은 키를 다시 찾을 수 있어야 함
        assert storage_key_from_url(data["url"], "post-images", HOST) == key

    def test_upload_jpeg_extension_normalized(self, client, api_headers):
        response = client.post(
            "/upload/image",
            files={"file": ("photo.jpeg", PNG, "image/jpeg")},
            headers=api_headers,
        )

        assert response.json()["data"]["path"].endswith(".jpg")

    def test_upload_image_wrong_type(self, client, storage, api_headers):
        response = client.post(
            "/upload/image",
            files={"file": ("page.html", b"<script>alert(1)</script>", "text/html")},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["statusMessage"] == "지원하지 않는 파일 형식입니다. (받은 타입: text/html)"
        assert storage.uploaded == {}

    def test_upload_image_too_large(self, client, storage, api_headers):
        response = client.post(
            "/upload/image",
            files={"file": ("big.png", b"\x00" * (10 * MB + 1), "image/png")},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["statusMessage"] == "파일 크기는 10MB 이하여야 합니다."
        assert storage.uploaded == {}

    def test_upload_image_missing_file(self, client, api_headers):
        response = client.post("/upload/image", headers=api_headers)

        assert response.status_code == 400
        assert response.json()["statusMessage"] == "파일이 없습니다."

    def test_upload_empty_file(self, client, api_headers):
        response = client.post(
            "/upload/image",
            files={"file": ("empty.png", b"", "image/png")},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["statusMessage"] == "파일이 없습니다."

    def test_upload_without_api_key(self, client, storage):
        response = client.post("/upload/image", files={"file": ("photo.png", PNG, "image/png")})

        assert response.status_code == 401
        assert storage.uploaded == {}

    def test_upload_storage_failure(self, client, storage, api_headers):
        storage.fail = True

        response = client.post(
            "/upload/image",
            files={"file": ("photo.png", PNG, "image/png")},
            headers=api_headers,
        )

        assert response.status_code == 500
        assert response.json()["statusMessage"] == "파일 업로드에 실패했습니다."


class TestUploadFile:
    """POST /upload/file 테스트"""

    def test_upload_pdf(self, client, storage, api_headers):
        response = client.post(
            "/upload/file",
            files={"file": ("보고서.pdf", b"%PDF-1.7", "application/pdf")},
            headers=api_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["uploadType"] == "file"
        assert re.fullmatch(r"\d{4}/\d{2}/\d{2}/file_\d+_[a-z0-9]{6}\.pdf", data["path"])
        key = f"{get_settings().attachment_prefix}/{data['path']}"
        assert key in storage.uploaded
        assert storage_key_from_url(data["url"], "attachments", HOST) == key

    def test_upload_file_too_large(self, client, api_headers):
        """첨부파일 한도는 5MB"""
        response = client.post(
            "/upload/file",
            files={"file": ("big.zip", b"\x00" * (5 * MB + 1), "application/zip")},
            headers=api_headers,
        )

        assert response.status_code == 400
        assert response.json()["statusMessage"] == "파일 크기는 5MB 이하여야 합니다."

    def test_upload_file_rejects_image(self, client, api_headers):
        response = client.post(
            "/upload/file",
            files={"file": ("photo.png", PNG, "image/png")},
            headers=api_headers,
        )
        assert response.status_code == 400


class TestStoragePath:
    """저장 경로 / 확장자"""

    def test_build_storage_path_uses_utc_date(self):
        with patch("routers.upload.utcnow", return_value=datetime(2026, 1, 18, 23, 59, 0)):
            path = build_storage_path("image", "png")

        assert path.startswith("2026/01/18/image_")
        assert path.endswith(".png")

    def test_image_extension(self):
        assert image_extension("a.JPEG", "image/jpeg") == "jpg"
        assert image_extension("noext", "image/webp") == "webp"
        assert image_extension("a.exe", "image/png") == "png"
        assert image_extension(None, None) == "jpg"
