"""
Upload file handling for formgate.

Provides:
- UploadFile: handle to one uploaded file, in memory or spilled to disk
- UploadWriter: accumulates one file part and spills it on demand
- FormFiles: field name -> list of UploadFile, with scoped cleanup
"""

from __future__ import annotations

import io
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Dict, List, Optional, Union

import aiofiles
import aiofiles.os


# ============================================================================
# UploadFile
# ============================================================================

@dataclass
class UploadFile:
    """
    Uploaded file representation.

    ``filename`` and ``content_type`` are exactly what the client sent
    and must be treated as untrusted. The content lives either in memory
    or in a named temporary file which stays on disk until
    :meth:`close` (or :meth:`FormFiles.cleanup`) is called.
    """

    filename: str
    content_type: str
    size: int = 0
    _content: Optional[bytes] = None
    _file_path: Optional[Path] = None
    _chunk_size: int = 64 * 1024

    @property
    def in_memory(self) -> bool:
        return self._file_path is None

    @property
    def path(self) -> Optional[Path]:
        """Path of the temporary file backing a spilled upload."""
        return self._file_path

    def open(self) -> BinaryIO:
        """Open the content as a seekable binary stream."""
        if self._file_path is not None:
            return open(self._file_path, "rb")
        return io.BytesIO(self._content or b"")

    async def read(self, size: int = -1) -> bytes:
        """
        Read file content.

        Args:
            size: Number of bytes to read (-1 for all)
        """
        if self._file_path is not None:
            async with aiofiles.open(self._file_path, "rb") as f:
                return await f.read(size)

        content = self._content or b""
        return content if size == -1 else content[:size]

    async def stream(self, chunk_size: Optional[int] = None) -> AsyncIterator[bytes]:
        """
        Stream file content in chunks.

        Args:
            chunk_size: Size of each chunk
        """
        chunk_size = chunk_size or self._chunk_size

        if self._file_path is not None:
            async with aiofiles.open(self._file_path, "rb") as f:
                while True:
                    chunk = await f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
            return

        content = self._content or b""
        for i in range(0, len(content), chunk_size):
            yield content[i:i + chunk_size]

    async def save(self, path: Union[str, Path], overwrite: bool = False) -> Path:
        """
        Save uploaded file to disk.

        Raises:
            FileExistsError: If file exists and overwrite=False
        """
        dest = Path(path)

        if dest.exists() and not overwrite:
            raise FileExistsError(f"File already exists: {dest}")

        dest.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(dest, "wb") as out:
            async for chunk in self.stream():
                await out.write(chunk)

        return dest

    def release(self) -> None:
        """Remove the temporary file, if any. Safe to call twice."""
        if self._file_path is not None:
            try:
                os.unlink(self._file_path)
            except FileNotFoundError:
                pass
            self._file_path = None
            self._content = b""

    async def close(self) -> None:
        """Clean up temporary file if exists."""
        if self._file_path is not None:
            try:
                await aiofiles.os.remove(self._file_path)
            except FileNotFoundError:
                pass
            self._file_path = None
            self._content = b""


# ============================================================================
# UploadWriter
# ============================================================================

class UploadWriter:
    """
    Collects the body of one file part.

    Bytes are buffered in memory until :meth:`spill` moves them into a
    named temporary file; everything written afterwards goes straight to
    disk.
    """

    def __init__(self, filename: str, content_type: str):
        self.filename = filename
        self.content_type = content_type
        self.size = 0
        self._buffer = bytearray()
        self._handle: Optional[BinaryIO] = None
        self._path: Optional[Path] = None

    @property
    def spilled(self) -> bool:
        return self._handle is not None

    def spill(self, directory: Optional[Path] = None) -> Path:
        """Move buffered bytes to a temporary file and keep writing there."""
        if directory is not None:
            directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(prefix="formgate-", suffix=".upload", dir=directory)
        self._path = Path(name)
        self._handle = os.fdopen(fd, "wb")
        self._handle.write(self._buffer)
        self._buffer = bytearray()
        return self._path

    def write(self, chunk: bytes) -> None:
        self.size += len(chunk)
        if self._handle is not None:
            self._handle.write(chunk)
        else:
            self._buffer.extend(chunk)

    def finish(self) -> UploadFile:
        """Close the writer and hand back the finished upload."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            return UploadFile(
                filename=self.filename,
                content_type=self.content_type,
                size=self.size,
                _file_path=self._path,
            )
        return UploadFile(
            filename=self.filename,
            content_type=self.content_type,
            size=self.size,
            _content=bytes(self._buffer),
        )

    def abort(self) -> None:
        """Drop everything written so far, including the temporary file."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        if self._path is not None:
            try:
                os.unlink(self._path)
            except FileNotFoundError:
                pass
            self._path = None
        self._buffer = bytearray()


# ============================================================================
# FormFiles
# ============================================================================

class FormFiles(Dict[str, List[UploadFile]]):
    """
    Uploaded files keyed by field name.

    A field only appears once it has at least one file. The container
    owns every spilled temporary file until :meth:`cleanup` or
    :meth:`release` runs.
    """

    def add(self, name: str, upload: UploadFile) -> None:
        self.setdefault(name, []).append(upload)

    def get_file(self, name: str) -> Optional[UploadFile]:
        """Get first uploaded file by name."""
        files = self.get(name, [])
        return files[0] if files else None

    def uploads(self) -> List[UploadFile]:
        return [upload for file_list in self.values() for upload in file_list]

    def release(self) -> None:
        """Synchronously remove every temporary upload file."""
        for upload in self.uploads():
            upload.release()

    async def cleanup(self) -> None:
        """Clean up all temporary upload files."""
        for upload in self.uploads():
            await upload.close()

