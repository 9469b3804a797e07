"""Reading the raw bytes of one entry from one source."""

import os
import zipfile
import zlib

from classpath_audit.errors import EntryNotFoundError, EntryReadError
from classpath_audit.models import Source


def _read_archive_entry(source: Source, entry_name: str) -> bytes:
    try:
        with zipfile.ZipFile(source.path) as zip_file:
            try:
                info = zip_file.getinfo(entry_name)
            except KeyError as e:
                msg = f"{entry_name} is not in {source.path}"
                raise EntryNotFoundError(msg) from e
            with zip_file.open(info) as stream:
                data = stream.read(info.file_size)
    except (
        OSError,
        EOFError,
        NotImplementedError,
        RuntimeError,
        zipfile.BadZipFile,
        zlib.error,
    ) as e:
        msg = f"Could not read {entry_name} from {source.path}: {e}"
        raise EntryReadError(msg) from e

    if len(data) != info.file_size:
        msg = (
            f"Short read of {entry_name} from {source.path}: "
            f"{len(data)} of {info.file_size} bytes"
        )
        raise EntryReadError(msg)
    return data


def _read_directory_entry(source: Source, entry_name: str) -> bytes:
    path = source.path / entry_name
    if not path.is_file():
        msg = f"{path} does not exist"
        raise EntryNotFoundError(msg)
    try:
        with path.open("rb") as f:
            size = os.fstat(f.fileno()).st_size
            data = f.read(size)
    except OSError as e:
        msg = f"Could not read the class file {path}: {e}"
        raise EntryReadError(msg) from e

    if len(data) != size:
        msg = f"Short read of {path}: {len(data)} of {size} bytes"
        raise EntryReadError(msg)
    return data


def read_entry(source: Source, entry_name: str) -> bytes:
    """Return the full bytes of ``entry_name`` from ``source`` only.

    Raises EntryNotFoundError when the source lacks the entry and
    EntryReadError when the bytes can not be read in full. Archive sizes come
    from the central directory, which zipfile also fills in for entries
    written with a data descriptor or ZIP64 sizes.
    """
    if source.is_archive:
        return _read_archive_entry(source, entry_name)
    return _read_directory_entry(source, entry_name)
