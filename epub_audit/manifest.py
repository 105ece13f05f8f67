"""Find the content root and the declared images of an EPUB.

According to the EPUB spec, META-INF/container.xml points to the OPF
package document, whose directory is the root of the book's content.
A missing or broken container is not fatal: the audit then runs unscoped.
"""

from __future__ import annotations

from typing import FrozenSet, Optional
from xml.etree import ElementTree as ET

from .archive import ArchiveFileMap
from .logging import get_logger
from .models import Options, PackageLocation
from .paths import normalize_member_path, parent_directory, resolve_reference

CONTAINER_PATH = "META-INF/container.xml"

logger = get_logger("manifest")


def _local(tag) -> str:
    # '{namespace}name' -> 'name'; comments and PIs have non-str tags
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _parse(archive: ArchiveFileMap, path: str) -> Optional[ET.Element]:
    member = archive.get(path)
    if member is None:
        return None
    try:
        return ET.fromstring(member.data)
    except (ET.ParseError, ValueError, LookupError) as e:
        logger.warning("Could not parse %s: %s", path, e)
        return None


def locate_package_path(archive: ArchiveFileMap) -> Optional[str]:
    """Return the ``full-path`` of the first rootfile declared by the container."""
    container = _parse(archive, CONTAINER_PATH)
    if container is None:
        logger.info("No usable %s, scanning the whole archive", CONTAINER_PATH)
        return None

    for el in container.iter():
        if _local(el.tag) == "rootfile":
            full_path = (el.get("full-path") or "").strip()
            if full_path:
                return normalize_member_path(full_path)
    logger.warning("%s declares no rootfile", CONTAINER_PATH)
    return None


def locate_root(archive: ArchiveFileMap) -> str:
    """Directory holding the package document, '' when it cannot be found."""
    package_path = locate_package_path(archive)
    return parent_directory(package_path) if package_path else ""


def find_package_document(
    archive: ArchiveFileMap, root: str, package_path: Optional[str] = None
) -> Optional[str]:
    """Pick the OPF document to read the manifest from.

    The container's declared path wins. Scanning for the first ``.opf``
    under ``root`` is only a fallback for archives whose container names a
    file that isn't there.
    """
    if package_path and package_path in archive:
        return package_path

    prefix = f"{root}/" if root else ""
    for path in archive:
        if path.startswith(prefix) and path.lower().endswith(".opf"):
            logger.info("Using fallback OPF file: %s", path)
            return path
    return None


def locate_manifest_images(
    archive: ArchiveFileMap, root: str, package_path: Optional[str] = None
) -> FrozenSet[str]:
    """Canonical paths of the manifest items whose media type is ``image/*``."""
    opf_path = find_package_document(archive, root, package_path)
    if opf_path is None:
        return frozenset()
    package = _parse(archive, opf_path)
    if package is None:
        return frozenset()

    images = set()
    for item in package.iter():
        if _local(item.tag) != "item":
            continue
        media_type = (item.get("media-type") or "").strip().lower()
        href = item.get("href")
        if not media_type.startswith("image/") or not href:
            continue
        resolved = resolve_reference(opf_path, href, root)
        if resolved:
            images.add(resolved)
        else:
            logger.debug("Manifest item %s does not resolve inside %r", href, root)
    return frozenset(images)


def locate(archive: ArchiveFileMap, options: Options) -> PackageLocation:
    package_path = locate_package_path(archive)
    root = parent_directory(package_path) if package_path else ""

    manifest_images: FrozenSet[str] = frozenset()
    if options.follow_manifest_only and package_path:
        manifest_images = locate_manifest_images(archive, root, package_path)
        if not manifest_images:
            logger.warning("Manifest declares no images, auditing all candidates")
    return PackageLocation(root, package_path, manifest_images)
