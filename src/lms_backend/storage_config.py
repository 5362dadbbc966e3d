"""
Upload limits and file type whitelist for course and lesson materials.
"""
import os
from typing import Dict, Set

MAX_UPLOAD_SIZE = int(os.environ.get('MATERIAL_MAX_UPLOAD_SIZE', 50 * 1024 * 1024))  # 50MB default

PRESIGNED_URL_EXPIRY_SECONDS = int(os.environ.get('MATERIAL_URL_EXPIRY', 3600))

# MIME type whitelist: documents, images, video, audio and archives
ALLOWED_MIME_TYPES: Set[str] = {
    # Documents
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-powerpoint',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'text/plain',
    # Images
    'image/jpeg',
    'image/png',
    'image/gif',
    # Video
    'video/mp4',
    'video/avi',
    'video/quicktime',
    # Audio
    'audio/mpeg',
    'audio/wav',
    # Archives
    'application/zip',
    'application/x-rar-compressed',
}

# Executable signatures rejected regardless of the declared MIME type
DANGEROUS_SIGNATURES: Dict[bytes, str] = {
    b'MZ': 'Windows executable',
    b'\x7fELF': 'Linux executable',
    b'\xfe\xed\xfa\xce': 'Mach-O executable (32-bit)',
    b'\xfe\xed\xfa\xcf': 'Mach-O executable (64-bit)',
    b'\xce\xfa\xed\xfe': 'Mach-O executable (reverse)',
    b'\xcf\xfa\xed\xfe': 'Mach-O executable (reverse 64-bit)',
    b'\xca\xfe\xba\xbe': 'Java class file',
}

# Object key layout in the bucket
MATERIAL_PATH_PATTERNS = {
    'course_material': 'courses/{course_id}/materials/{unique}-{filename}',
    'lesson_material': 'courses/{course_id}/lessons/{lesson_id}/materials/{unique}-{filename}',
}

def format_bytes(bytes_size: int) -> str:
    """Format bytes to human readable string"""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} TB"
