# =============================================================================
# app/routers/upload.py - Photo Upload Endpoint
# =============================================================================
# Stores customer and manufacturing photos in Supabase Storage and returns
# their public URL.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile
from pydantic import BaseModel

from app.dependencies import StorageServiceDep
from core.services import PhotoKind

logger = logging.getLogger(__name__)

router = APIRouter()


class PhotoUploadResponse(BaseModel):
    url: str
    path: str


@router.post("", response_model=PhotoUploadResponse)
async def upload_photo(
    file: Annotated[UploadFile, File(description="JPEG, PNG or WebP image")],
    service: StorageServiceDep,
    type: Annotated[PhotoKind, Form(description="customer or manufacturing")] = PhotoKind.MANUFACTURING,
):
    """
    Upload a photo.

    1. Validates the image type and size
    2. Stores it under a unique name in the bucket for its type
    3. Returns the public URL
    """
    filename = file.filename or "photo.jpg"
    content = await file.read()

    logger.info(f"Processing photo upload: {filename} ({len(content)} bytes, type: {type.value})")

    stored = service.upload_photo(type, filename, content, file.content_type)
    return PhotoUploadResponse(**stored)
