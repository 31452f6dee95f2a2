#!/usr/bin/env python3
"""
Photo Repository

Stores uploaded photos as files under one directory. Each stored photo is
addressed by a PhotoHandle carrying a generated file name; the client's
original file name is only used, sanitized, as a readable suffix.
"""
import io
import os
import re
import tempfile
import time
import uuid
from contextlib import suppress
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict

from .errors import NotFound, StorageError

DEFAULT_MEDIA_TYPE = 'image/jpeg'

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]')
_SEPARATORS = re.compile(r'[\\/]')
_MAX_HINT_LENGTH = 100
_TEMP_PREFIX = '.upload-'
_FILE_MODE = 0o644


class PhotoHandle(BaseModel):
    """Opaque reference to one stored photo."""
    model_config = ConfigDict(frozen=True)

    name: str

    def __str__(self) -> str:
        return self.name


def sanitize_name_hint(hint: Optional[str]) -> str:
    """
    Reduce a client-supplied file name to something safe to embed in a file name.

    Only the last path component survives (either separator style), '.' and
    '..' are dropped, anything outside [A-Za-z0-9._-] becomes '_' and leading
    dots are stripped. Falls back to 'photo' when nothing is left.
    """
    if not hint:
        return 'photo'

    name = _SEPARATORS.split(hint)[-1]
    if name in ('.', '..'):
        name = ''
    name = _UNSAFE_CHARS.sub('_', name).lstrip('.')
    return name[-_MAX_HINT_LENGTH:] or 'photo'


def guess_media_type(data: bytes, default: str = DEFAULT_MEDIA_TYPE) -> str:
    """Identify the image format of data with Pillow and return its MIME type."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return default
    if not fmt:
        return default
    return Image.MIME.get(fmt, default)


class PhotoRepository:
    """
    File-system storage for photo blobs.

    The repository does not know which record uses which photo; that
    association belongs to the InventoryStore.
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _resolve(self, handle: PhotoHandle) -> Optional[Path]:
        """Resolve a handle to a path, or None if it would land outside the directory."""
        root = self._directory.resolve()
        candidate = (self._directory / handle.name).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            return None
        if candidate == root:
            return None
        return candidate

    def _generate_name(self, name_hint: Optional[str]) -> str:
        millis = int(time.time() * 1000)
        return f"{millis}-{uuid.uuid4().hex[:8]}-{sanitize_name_hint(name_hint)}"

    def store(self, data: bytes, name_hint: Optional[str] = None) -> PhotoHandle:
        """
        Persist data under a newly generated name.

        The bytes go to a hidden temporary file first and are renamed into
        place, so a failed write leaves nothing under the returned name.

        Raises:
            StorageError: if the file cannot be written
        """
        handle = PhotoHandle(name=self._generate_name(name_hint))
        target = self._resolve(handle)
        if target is None:
            raise StorageError(f"Generated photo name {handle.name!r} resolves outside {self._directory}")

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(dir=self._directory, prefix=_TEMP_PREFIX, delete=False) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(data)
            # NamedTemporaryFile creates 0600 files
            os.chmod(tmp_path, _FILE_MODE)
            os.replace(tmp_path, target)
        except OSError as e:
            if tmp_path is not None:
                with suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Failed to store photo {handle.name}: {e}") from e

        return handle

    def read(self, handle: PhotoHandle) -> bytes:
        """
        Return the bytes of a stored photo.

        Raises:
            NotFound: if no such photo exists
            StorageError: if the file exists but cannot be read
        """
        path = self._resolve(handle)
        if path is None:
            raise NotFound(f"Photo {handle.name} not found")
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFound(f"Photo {handle.name} not found") from e
        except OSError as e:
            raise StorageError(f"Failed to read photo {handle.name}: {e}") from e

    def delete(self, handle: PhotoHandle) -> None:
        """
        Delete a stored photo. Deleting a photo that is already gone is not an error.

        Raises:
            StorageError: if the file exists but cannot be removed
        """
        path = self._resolve(handle)
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to delete photo {handle.name}: {e}") from e

    def exists(self, handle: PhotoHandle) -> bool:
        path = self._resolve(handle)
        return path is not None and path.is_file()
