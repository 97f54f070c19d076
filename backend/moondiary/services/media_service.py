"""
Media attachments in the ``diary-media`` storage bucket.

Uploads are validated (image/video, at most 100MB) before they reach storage.
Deletes are best effort: a failure is logged and reported as False, never raised.
"""
import logging
import secrets
import string
import time
from typing import Optional
from urllib.parse import unquote, urlparse

from supabase import Client

from ..config import (
    ALLOWED_MEDIA_PREFIXES,
    MAX_MEDIA_SIZE,
    MEDIA_CACHE_CONTROL,
    STORAGE_BUCKET,
    VIDEO_URL_MARKERS,
)
from ..core.errors import (
    SESSION_EXPIRED_MESSAGE,
    AuthError,
    MediaUploadError,
    MediaValidationError,
    is_session_expired,
)

logger = logging.getLogger(__name__)

TEMP_FOLDER = "temp"
_ALPHABET = string.ascii_lowercase + string.digits


def validate_media(filename: str, content_type: Optional[str], size: int) -> None:
    content_type = content_type or ""
    if not content_type.startswith(ALLOWED_MEDIA_PREFIXES):
        raise MediaValidationError(
            f"{filename}은(는) 지원하지 않는 파일 형식입니다. 이미지나 동영상만 업로드 가능합니다."
        )
    if size > MAX_MEDIA_SIZE:
        raise MediaValidationError(f"{filename}의 크기가 너무 큽니다. 최대 100MB까지 업로드 가능합니다.")


def build_object_path(filename: str, entry_id: Optional[str] = None) -> str:
    """``{entry_id}/{ms}_{random}.{ext}``, or under ``temp/`` before the entry exists."""
    extension = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    token = "".join(secrets.choice(_ALPHABET) for _ in range(10))
    name = f"{int(time.time() * 1000)}_{token}.{extension}"
    return f"{entry_id or TEMP_FOLDER}/{name}"


def extract_object_path(url: str) -> Optional[str]:
    """Path inside the bucket from a public URL (``.../object/public/<bucket>/<path>``)."""
    try:
        parts = urlparse(url).path.split("/")
    except ValueError:
        return None
    if STORAGE_BUCKET not in parts:
        return None
    path = "/".join(parts[parts.index(STORAGE_BUCKET) + 1:])
    return unquote(path) or None


def is_temp_url(url: str) -> bool:
    return f"/{TEMP_FOLDER}/" in url


def is_video_url(url: str) -> bool:
    return any(marker in url for marker in VIDEO_URL_MARKERS)


def _translate_upload_error(error: Exception) -> MediaUploadError:
    message = str(getattr(error, "message", None) or error)
    if "Bucket not found" in message or "not found" in message:
        return MediaUploadError(
            f'Storage 버킷이 설정되지 않았습니다. Supabase 대시보드에서 "{STORAGE_BUCKET}" 버킷을 생성해주세요.'
        )
    if "row-level security" in message or "RLS" in message:
        return MediaUploadError(
            f"Storage 버킷 정책이 설정되지 않았습니다. Storage → Policies → {STORAGE_BUCKET}에서 정책을 생성해주세요."
        )
    return MediaUploadError(f"파일 업로드 실패: {message or '알 수 없는 오류'}")


class MediaService:
    def __init__(self, client: Client):
        self.client = client

    def _bucket(self):
        return self.client.storage.from_(STORAGE_BUCKET)

    def upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        entry_id: Optional[str] = None,
    ) -> str:
        """Validates, uploads and returns the public URL."""
        validate_media(filename, content_type, len(content))
        path = build_object_path(filename, entry_id)
        logger.info(f"[MEDIA] ⬆️ uploading {filename} ({len(content)} bytes) -> {path}")

        try:
            self._bucket().upload(
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": MEDIA_CACHE_CONTROL,
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"[MEDIA] ❌ upload failed: path={path}, error={e}", exc_info=True)
            if is_session_expired(e):
                raise AuthError(SESSION_EXPIRED_MESSAGE)
            raise _translate_upload_error(e)

        public_url = self._bucket().get_public_url(path)
        logger.info(f"[MEDIA] ✅ uploaded: {public_url}")
        return public_url

    def delete_file(self, url: str) -> bool:
        path = extract_object_path(url)
        if path is None:
            logger.warning(f"[MEDIA] ⚠️ bucket not found in URL, skipping delete: {url}")
            return False
        try:
            self._bucket().remove([path])
        except Exception as e:
            logger.warning(f"[MEDIA] ⚠️ delete failed (ignored): path={path}, error={e}")
            return False
        logger.info(f"[MEDIA] 🗑️ deleted: {path}")
        return True

    def remove_from_entry(self, url: str) -> bool:
        """Media removed in the editor. Temp uploads are left for storage cleanup."""
        if is_temp_url(url):
            return False
        return self.delete_file(url)
