"""
Validation utilities for medical image uploads.

Checks run in order: presence, content type, extension, then size once the
body has been read.
"""
import logging
from pathlib import Path
from typing import Optional, Tuple

from fastapi import UploadFile

from core.exceptions import FileTooLargeError, InvalidFileTypeError, InvalidRequestError

logger = logging.getLogger(__name__)

# Allowed image MIME types and extensions
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": [".jpg", ".jpeg"],
    "image/png": [".png"],
    "image/gif": [".gif"],
    "image/bmp": [".bmp"]
}
ALLOWED_EXTENSIONS = {ext for exts in ALLOWED_IMAGE_TYPES.values() for ext in exts}


def validate_file_present(file: Optional[UploadFile]) -> None:
    """
    Raises:
        InvalidRequestError: If no file is provided.
    """
    if not file:
        logger.warning("No file provided in upload request")
        raise InvalidRequestError("Image file is required")


def validate_content_type(file: UploadFile) -> str:
    """
    Validate that the file has an allowed image content type.

    Returns:
        str: The validated content type.

    Raises:
        InvalidFileTypeError: If the content type is missing or not allowed.
    """
    if not file.content_type:
        logger.warning("File has no content type")
        raise InvalidFileTypeError("File content type is missing")

    if file.content_type not in ALLOWED_IMAGE_TYPES:
        logger.warning(f"Invalid content type: {file.content_type}")
        raise InvalidFileTypeError(
            f"Invalid file type. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES.keys())}"
        )

    return file.content_type


def validate_file_extension(file: UploadFile, content_type: str) -> str:
    """
    Validate that the extension is allowed and matches the content type.

    Returns:
        str: The validated file extension (with leading dot).

    Raises:
        InvalidFileTypeError: If the extension is missing, not allowed or mismatched.
    """
    file_extension = Path(file.filename).suffix.lower() if file.filename else ""

    if not file_extension or file_extension not in ALLOWED_EXTENSIONS:
        logger.warning(f"Invalid file extension: {file_extension}")
        raise InvalidFileTypeError(
            f"Invalid file extension. Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    if file_extension not in ALLOWED_IMAGE_TYPES.get(content_type, []):
        logger.warning(f"File extension {file_extension} does not match content type {content_type}")
        raise InvalidFileTypeError("File extension does not match content type")

    return file_extension


def validate_file_size(file_size: int, max_size: int) -> None:
    """
    Raises:
        InvalidRequestError: If the file is empty.
        FileTooLargeError: If the file exceeds ``max_size`` bytes.
    """
    if file_size == 0:
        logger.warning("Empty file uploaded")
        raise InvalidRequestError("File is empty")

    if file_size > max_size:
        logger.warning(f"File size {file_size} exceeds maximum {max_size}")
        raise FileTooLargeError(
            f"File size exceeds maximum allowed size of {max_size / (1024 * 1024):.1f}MB"
        )


def validate_upload_file(file: Optional[UploadFile]) -> Tuple[str, str]:
    """
    Run the header checks on an uploaded image.

    Size is validated separately once the body has been read.

    Returns:
        Tuple[str, str]: (content_type, file_extension)
    """
    validate_file_present(file)
    content_type = validate_content_type(file)
    file_extension = validate_file_extension(file, content_type)
    return content_type, file_extension


async def read_validated_image(file: Optional[UploadFile], max_size: int) -> bytes:
    """Validate an uploaded image and return its bytes."""
    validate_upload_file(file)
    # Read one byte past the limit so oversized uploads are detected without buffering them whole
    content = await file.read(max_size + 1)
    validate_file_size(len(content), max_size)
    return content
