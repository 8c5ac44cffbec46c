from dataclasses import dataclass
import logging
import os
from pathlib import Path
import time
from typing import BinaryIO, Optional

from app.config import settings

LOGGER = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".bmp"}
CHUNK_SIZE = 1024 * 1024


class AssetError(RuntimeError):
    pass


class AssetNotFound(AssetError):
    pass


class InvalidAssetName(AssetError):
    pass


@dataclass(frozen=True)
class StoredAsset:
    name: str
    file_path: str


class AssetStore:
    """Stores uploaded images in a directory that is served statically."""

    def __init__(self, directory: str, url_prefix: str = "/images", field_name: str = "image") -> None:
        self._directory = Path(directory)
        self._url_prefix = url_prefix.rstrip("/")
        self._field_name = field_name

    @property
    def directory(self) -> Path:
        return self._directory

    def ensure_directory(self) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)

    def save(self, original_filename: Optional[str], stream: BinaryIO) -> StoredAsset:
        extension = Path(original_filename or "").suffix.lower()
        if extension and extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise InvalidAssetName(f"File type {extension} is not supported")

        self.ensure_directory()
        name = self._unique_name(extension)
        target = self._directory / name
        try:
            with target.open("wb") as handle:
                while chunk := stream.read(CHUNK_SIZE):
                    handle.write(chunk)
        except OSError as exc:
            LOGGER.error("Failed to store upload %s: %s", name, exc)
            raise AssetError("Error saving image") from exc
        LOGGER.info("Stored image %s (%d bytes)", name, target.stat().st_size)
        return StoredAsset(name=name, file_path=self.reference_for(name))

    def delete(self, name: str) -> None:
        target = self._resolve(name)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise AssetNotFound("Image not found") from exc
        except OSError as exc:
            LOGGER.error("Failed to delete image %s: %s", name, exc)
            raise AssetError("Error deleting image") from exc
        LOGGER.info("Deleted image %s", name)

    def list_assets(self) -> list[StoredAsset]:
        if not self._directory.is_dir():
            return []
        entries = sorted(
            entry.name
            for entry in self._directory.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )
        return [StoredAsset(name=name, file_path=self.reference_for(name)) for name in entries]

    def reference_for(self, name: str) -> str:
        return f"{self._url_prefix}/{name}"

    def _unique_name(self, extension: str) -> str:
        stamp = int(time.time() * 1000)
        name = f"{self._field_name}-{stamp}{extension}"
        suffix = 1
        while (self._directory / name).exists():
            name = f"{self._field_name}-{stamp}-{suffix}{extension}"
            suffix += 1
        return name

    def _resolve(self, name: str) -> Path:
        if not name or name != os.path.basename(name) or name in {".", ".."}:
            raise InvalidAssetName("Invalid image name")
        return self._directory / name


asset_store = AssetStore(settings.image_dir, settings.image_url_prefix)
