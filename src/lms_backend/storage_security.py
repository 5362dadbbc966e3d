"""
Validation of uploaded material files.
"""
import logging
import re
from typing import Optional, Tuple

from .storage_config import (
    MAX_UPLOAD_SIZE,
    ALLOWED_MIME_TYPES,
    DANGEROUS_SIGNATURES,
    format_bytes
)
from .api.exceptions import BadRequestException

logger = logging.getLogger(__name__)


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Reduce an uploaded filename to a safe final path component.

    Directory parts are dropped, leading dots replaced, characters outside
    word characters, spaces, dots and hyphens removed, whitespace collapsed
    to underscores and the stem limited to 100 characters.
    """
    if not filename or not filename.strip():
        return "unnamed_file"

    filename = filename.replace('\\', '/').split('/')[-1]

    if filename.startswith('.'):
        filename = '_' + filename.lstrip('.')

    filename = re.sub(r'[^\w\s.-]', '', filename, flags=re.UNICODE)
    filename = re.sub(r'\s+', '_', filename)
    filename = filename.strip('. ')

    stem, dot, ext = filename.rpartition('.')
    if dot and stem:
        filename = f"{stem[:100]}.{ext}"
    else:
        filename = filename[:100]

    if not filename or filename.strip('_') == '':
        return "unnamed_file"

    return filename


def validate_content_type(content_type: Optional[str]) -> Tuple[bool, Optional[str]]:
    # Normalize content type (remove parameters like charset)
    normalized = (content_type or "").split(';')[0].strip().lower()

    if normalized not in ALLOWED_MIME_TYPES:
        return False, "Invalid file type. Only documents, images, videos, and archives are allowed."

    return True, None


def validate_file_size(file_size: int) -> Tuple[bool, Optional[str]]:
    if file_size > MAX_UPLOAD_SIZE:
        return False, f"File size {format_bytes(file_size)} exceeds maximum allowed size of {format_bytes(MAX_UPLOAD_SIZE)}"

    if file_size == 0:
        return False, "Empty files are not allowed"

    return True, None


def check_file_content_security(header: bytes) -> Tuple[bool, Optional[str]]:
    for signature, description in DANGEROUS_SIGNATURES.items():
        if header.startswith(signature):
            return False, f"File type not allowed: {description}"
    return True, None


def perform_full_file_validation(filename: Optional[str], content_type: Optional[str], data: bytes) -> None:
    """
    Perform all file validations. Raises BadRequestException if validation fails.
    """
    valid, error = validate_file_size(len(data))
    if not valid:
        raise BadRequestException(error)

    valid, error = validate_content_type(content_type)
    if not valid:
        raise BadRequestException(error)

    valid, error = check_file_content_security(data[:256])
    if not valid:
        raise BadRequestException(error)

    logger.info(f"File validation passed for: {filename} ({format_bytes(len(data))})")
