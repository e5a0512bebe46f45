"""
Post image encoding.

Images are not stored as files; each post carries its image inline as a
data URI so the post list stays self-contained.
"""

import base64
from typing import Optional

from omnipost.exceptions import ValidationError


def to_data_uri(data: bytes, content_type: Optional[str], max_bytes: int) -> str:
    """
    Encode an uploaded image as data:<type>;base64,<payload>.
    Raises ValidationError for non-images, empty files and oversized files.
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image files are accepted", details={"content_type": content_type})
    if not data:
        raise ValidationError("Image file is empty")
    if len(data) > max_bytes:
        raise ValidationError(
            f"Image is larger than {max_bytes / (1024 * 1024):g} MB",
            details={"size": len(data), "max": max_bytes},
        )
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{payload}"
