"""Conversion between URL-style locators and filesystem paths."""

from pathlib import Path
from urllib.parse import unquote, urljoin, urlsplit
from urllib.request import url2pathname

FILE_SCHEME = "file"
JAR_SCHEME = "jar"
JAR_SEPARATOR = "!/"


def path_to_locator(path: Path | str) -> str:
    """Return the absolute ``file:`` locator for a path.

    Directories get a trailing slash so that relative references resolve
    inside them.
    """
    p = Path(path).resolve()
    uri = p.as_uri()
    if p.is_dir() and not uri.endswith("/"):
        uri += "/"
    return uri


def locator_to_path(locator: str) -> Path | None:
    """Return the local path a locator denotes, or None for other schemes.

    ``jar:file:/x.jar!/`` denotes the archive ``/x.jar``. Raises ValueError
    when the decoded path holds a NUL character.
    """
    parts = urlsplit(locator)
    scheme = parts.scheme.lower()
    if scheme == JAR_SCHEME:
        inner = locator[len(JAR_SCHEME) + 1 :]
        inner = inner.split(JAR_SEPARATOR, 1)[0]
        return locator_to_path(inner)
    if scheme != FILE_SCHEME:
        return None
    if parts.netloc and parts.netloc != "localhost":
        return None
    path = url2pathname(unquote(parts.path))
    if "\x00" in path:
        msg = f"Embedded null byte in {locator}"
        raise ValueError(msg)
    return Path(path)


def resolve_reference(reference: str, base_locator: str) -> str:
    """Resolve a manifest ``Class-Path`` reference against its archive.

    Absolute references are returned unchanged. Raises ValueError when the
    reference can not be parsed as a URL.
    """
    if not reference:
        msg = "empty reference"
        raise ValueError(msg)
    parts = urlsplit(reference)
    # Accessing port validates it.
    _ = parts.port
    # Single letter schemes are drive letters.
    if parts.scheme and len(parts.scheme) > 1:
        return reference
    return urljoin(base_locator, reference)
