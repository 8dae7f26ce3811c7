"""
Local disk storage for danger report photos.

Files are written under settings.images_dir and served by the API under
settings.images_mount_path.
"""

import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Optional
from uuid import uuid4

from alerthub.core.config import settings

logger = logging.getLogger(__name__)


def new_image_name(extension: str) -> str:
    """Collision-free stored name, e.g. '3f2c...e1.png'."""
    return f"{uuid4()}.{extension}"


class LocalImageStorage:
    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or settings.images_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        # Stored names are generated, never user supplied; strip any path anyway
        return self.base_dir / Path(name).name

    def store(self, name: str, stream: BinaryIO) -> Path:
        """
        Write an uploaded image to disk.

        A partially written file is removed before the error propagates.
        """
        destination = self.path_for(name)
        try:
            stream.seek(0)
            with destination.open("wb") as buffer:
                shutil.copyfileobj(stream, buffer)
        except Exception:
            destination.unlink(missing_ok=True)
            raise

        logger.info(f"Successfully uploaded image {name}")
        return destination

    def delete(self, name: str) -> bool:
        """Remove a stored image. Returns False if it did not exist."""
        destination = self.path_for(name)
        if not destination.exists():
            return False
        destination.unlink()
        logger.info(f"Deleted image {name}")
        return True
