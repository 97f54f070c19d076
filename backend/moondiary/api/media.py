import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ..core.db import create_user_client
from ..core.errors import MoonDiaryError
from ..models.user import User
from ..services.media_service import MediaService, validate_media
from .auth import get_current_user
from .errors import to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)


def get_media_service(current_user: User = Depends(get_current_user)) -> MediaService:
    return MediaService(create_user_client(current_user.access_token))


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_media(
    file: UploadFile = File(...),
    entry_id: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    media_service: MediaService = Depends(get_media_service),
):
    logger.info(f"[MEDIA] upload request: user_id={current_user.id}, file={file.filename}, entry_id={entry_id}")
    filename = file.filename or "upload"
    try:
        # Type and declared size are checked before the body is read into memory
        validate_media(filename, file.content_type, file.size or 0)
        content = await file.read()
        url = media_service.upload(filename, content, file.content_type, entry_id)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return {"url": url}


@router.delete("")
def delete_media(
    url: str = Query(...),
    current_user: User = Depends(get_current_user),
    media_service: MediaService = Depends(get_media_service),
):
    return {"deleted": media_service.delete_file(url)}
