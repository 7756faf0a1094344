"""Local-disk storage for generated and uploaded images.

Files are written under MEDIA_ROOT with a random name and served by the
StaticFiles mount at PUBLIC_PREFIX. The returned reference is the public path,
which is what artifacts store as ``generated_image_ref``/``user_image_ref``.
"""

import mimetypes
import os
import uuid
from pathlib import Path

from goodchoice.observability.logging import get_logger
from goodchoice.observability.redaction import safe_log_context

logger = get_logger(__name__)

DEFAULT_MEDIA_ROOT = "uploads"
PUBLIC_PREFIX = "/uploads"

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


class MediaStorage:
    """Write-once file store addressed by public path."""

    def __init__(self, root: str | os.PathLike[str], public_prefix: str = PUBLIC_PREFIX) -> None:
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    @classmethod
    def from_env(cls) -> "MediaStorage":
        return cls(os.environ.get("MEDIA_ROOT", DEFAULT_MEDIA_ROOT))

    def save(self, data: bytes, mime_type: str = "image/png", *, folder: str = "generated") -> str:
        """Persist bytes and return the public reference.

        Raises:
            ValueError: If data is empty.
            OSError: If the file cannot be written.
        """
        if not data:
            raise ValueError("refusing to store empty media")

        extension = _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ".bin"
        name = f"{uuid.uuid4().hex}{extension}"
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(data)

        ref = f"{self.public_prefix}/{folder}/{name}"
        logger.info(
            "media stored",
            extra={"extra_fields": safe_log_context(ref=ref, size=len(data), mime_type=mime_type)},
        )
        return ref

    def resolve(self, ref: str) -> Path:
        """Map a public reference back to its path on disk."""
        if not ref.startswith(self.public_prefix + "/"):
            raise ValueError(f"not a local media reference: {ref}")
        return self.root / ref[len(self.public_prefix) + 1:]

    def delete(self, ref: str) -> bool:
        """Remove a stored file. Returns False if it could not be removed."""
        try:
            self.resolve(ref).unlink()
        except (ValueError, OSError):
            logger.warning(
                "media delete failed",
                extra={"extra_fields": safe_log_context(ref=ref)},
            )
            return False
        logger.info("media deleted", extra={"extra_fields": safe_log_context(ref=ref)})
        return True
