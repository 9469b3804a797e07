"""Logic for turning an archive's manifest ``Class-Path`` into locators."""

import logging
import zipfile

from classpath_audit.locator import resolve_reference
from classpath_audit.manifest import class_path_references, read_manifest
from classpath_audit.models import Source

logger = logging.getLogger(__name__)


def expand_class_path(zip_file: zipfile.ZipFile, source: Source) -> list[str]:
    """Return the locators referenced by the archive's manifest.

    Relative references resolve next to the archive. References that can not
    be parsed are logged and dropped.
    """
    manifest = read_manifest(zip_file)
    references = class_path_references(manifest)
    if not references:
        return []
    logger.debug("Class path from %s is %s", source.locator, " ".join(references))

    base = source.path.absolute().as_uri()
    locators: list[str] = []
    for reference in references:
        try:
            locators.append(resolve_reference(reference, base))
        except ValueError:
            logger.error(
                "The reference %r given in the manifest of %s can not be "
                "converted to a locator",
                reference,
                source.locator,
            )
    return locators
