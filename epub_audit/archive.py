"""Load an EPUB (zip) into an in-memory map of member path -> bytes."""

from __future__ import annotations

import io
import pathlib
import zipfile
import zlib
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Union

from .errors import ArchiveError
from .logging import get_logger
from .paths import normalize_member_path

logger = get_logger("archive")


@dataclass(frozen=True)
class ArchiveFile:
    path: str
    data: bytes

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


ArchiveFileMap = Mapping[str, ArchiveFile]


def open_archive(data: bytes) -> ArchiveFileMap:
    """Read every regular file of the zip held in ``data``.

    Keys are canonical member paths in archive order. Directory entries are
    skipped, as are names that would land outside the archive.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as z:
            files: Dict[str, ArchiveFile] = {}
            for info in z.infolist():
                if info.is_dir():
                    continue
                path = normalize_member_path(info.filename)
                if path is None:
                    logger.warning("Ignoring member outside the archive: %s", info.filename)
                    continue
                if path in files:
                    logger.debug("Duplicate member %s, keeping the last one", path)
                files[path] = ArchiveFile(path, z.read(info))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError) as e:
        raise ArchiveError(f"Could not open archive: {e}") from e
    except (RuntimeError, NotImplementedError) as e:
        # encrypted members or unsupported compression
        raise ArchiveError(f"Could not read archive member: {e}") from e

    logger.debug("Loaded %d archive members", len(files))
    return MappingProxyType(files)


def read_archive(path: Union[str, pathlib.Path]) -> ArchiveFileMap:
    path = pathlib.Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ArchiveError(f"Could not read {path}: {e}") from e
    return open_archive(data)
