"""Pick the images to audit, reconcile them with the references, run the whole audit."""

from __future__ import annotations

import pathlib
from typing import AbstractSet, Callable, Iterable, List, Optional, Tuple, Union

from .archive import ArchiveFileMap, open_archive, read_archive
from .errors import ImageProbeError
from .images import RASTER_EXTENSIONS, image_dimensions
from .logging import get_logger
from .manifest import locate
from .models import (
    DEFAULT_PIXEL_THRESHOLD,
    AuditResult,
    CandidateImage,
    ClassificationResult,
    Options,
    OversizedImage,
    Skip,
)
from .references import collect_references

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif")
IMAGES_FOLDER = "images"

DimensionProvider = Callable[[bytes], Tuple[int, int]]

logger = get_logger("audit")


def in_images_folder(path: str) -> bool:
    return IMAGES_FOLDER in (part.lower() for part in path.split("/")[:-1])


def select_candidates(
    archive: ArchiveFileMap,
    options: Options,
    manifest_images: AbstractSet[str] = frozenset(),
) -> List[CandidateImage]:
    """Image members eligible for auditing, in archive order."""
    restrict = options.follow_manifest_only and bool(manifest_images)
    out = []
    for path in archive:
        if not path.lower().endswith(IMAGE_EXTENSIONS):
            continue
        if not options.search_all_images and not in_images_folder(path):
            continue
        if restrict and path not in manifest_images:
            continue
        out.append(CandidateImage.from_path(path))
    return out


def _probe(path: str, data: bytes, dimension_provider: DimensionProvider) -> Union[Tuple[int, int], Skip]:
    try:
        return dimension_provider(data)
    except ImageProbeError as e:
        logger.debug("No dimensions for %s: %s", path, e)
        return Skip(path, f"could not read image size: {e}")


def classify(
    archive: ArchiveFileMap,
    candidates: Iterable[CandidateImage],
    used: AbstractSet[str],
    dimension_provider: DimensionProvider = image_dimensions,
    pixel_threshold: int = DEFAULT_PIXEL_THRESHOLD,
) -> ClassificationResult:
    """Split candidates into unreferenced and oversized.

    The two checks are independent, so a candidate can appear in both lists.
    Results are sorted by path.
    """
    unreferenced = []
    oversized = []
    skipped = []
    for image in sorted(candidates, key=lambda c: c.path):
        if image.path not in used:
            unreferenced.append(image)
        if image.file_ext not in RASTER_EXTENSIONS:
            continue
        probed = _probe(image.path, archive[image.path].data, dimension_provider)
        if isinstance(probed, Skip):
            skipped.append(probed)
            continue
        width, height = probed
        if width * height >= pixel_threshold:
            oversized.append(OversizedImage(image, width, height))
    return ClassificationResult(tuple(unreferenced), tuple(oversized), tuple(skipped))


def audit(
    archive: ArchiveFileMap,
    options: Optional[Options] = None,
    dimension_provider: DimensionProvider = image_dimensions,
) -> AuditResult:
    options = options or Options()
    location = locate(archive, options)
    candidates = select_candidates(archive, options, location.manifest_images)
    references = collect_references(archive, location.root, options)
    classification = classify(
        archive, candidates, references.used, dimension_provider, options.pixel_threshold
    )
    logger.info(
        "%d candidates, %d unreferenced, %d oversized (root %r)",
        len(candidates),
        len(classification.unreferenced),
        len(classification.oversized),
        location.root,
    )
    return AuditResult(
        options=options,
        location=location,
        candidates=tuple(candidates),
        used=references.used,
        classification=classification,
        skipped=references.skipped + classification.skipped,
    )


def audit_archive(data: bytes, options: Optional[Options] = None) -> AuditResult:
    """Audit the EPUB held in ``data``. Raises ArchiveError if it isn't a readable zip."""
    return audit(open_archive(data), options)


def audit_file(path: Union[str, pathlib.Path], options: Optional[Options] = None) -> AuditResult:
    return audit(read_archive(path), options)


__all__ = [
    "IMAGE_EXTENSIONS",
    "audit",
    "audit_archive",
    "audit_file",
    "classify",
    "select_candidates",
]
