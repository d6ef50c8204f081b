import asyncio
import base64
import binascii
import logging
import re
from io import BytesIO
from typing import List, Optional, Tuple

from fastapi import UploadFile
from google.genai import types
from PIL import Image, UnidentifiedImageError

from event_render.exceptions import ImageReadError
from event_render.schemas import ImagePayload

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def _sniff_mime_type(data: bytes) -> str:
    try:
        with Image.open(BytesIO(data)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ImageReadError(f"Failed to read file as an image: {e}")
    mime_type = Image.MIME.get(image_format)
    if not mime_type:
        raise ImageReadError(f"Unsupported image format: {image_format}")
    return mime_type


def encode_image_bytes(data: bytes, mime_type: Optional[str] = None, filename: Optional[str] = None) -> ImagePayload:
    """
    Builds an ImagePayload from raw file bytes. The bytes must decode as an image;
    the declared MIME type is kept when it is an image type, otherwise the one
    detected by Pillow is used.
    """
    if not data:
        raise ImageReadError("Failed to read file: the file is empty.")
    detected = _sniff_mime_type(data)
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = detected
    return ImagePayload(
        data=base64.b64encode(data).decode("ascii"),
        mime_type=mime_type,
        filename=filename,
    )


async def read_upload(upload: UploadFile) -> ImagePayload:
    data = await upload.read()
    return encode_image_bytes(data, upload.content_type, upload.filename)


async def read_uploads(uploads: List[UploadFile]) -> List[ImagePayload]:
    return list(await asyncio.gather(*(read_upload(upload) for upload in uploads)))


def data_url_to_payload(data_url: str, filename: Optional[str] = None) -> ImagePayload:
    """Strips the ``data:<mime>;base64,`` prefix and keeps only the base64 segment."""
    match = DATA_URL_PATTERN.match(data_url or "")
    if not match:
        raise ImageReadError("Failed to read file as Data URL")
    return ImagePayload(data=match.group("data"), mime_type=match.group("mime"), filename=filename)


def bytes_to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_to_bytes(data_url: str) -> Tuple[bytes, str]:
    payload = data_url_to_payload(data_url)
    try:
        return base64.b64decode(payload.data, validate=True), payload.mime_type
    except binascii.Error as e:
        raise ImageReadError(f"Invalid base64 data in Data URL: {e}")


def payload_to_part(payload: ImagePayload) -> types.Part:
    return types.Part.from_bytes(data=base64.b64decode(payload.data), mime_type=payload.mime_type)
