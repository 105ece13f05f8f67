"""Find unreferenced and oversized images in EPUB archives."""

from .archive import ArchiveFile, open_archive, read_archive
from .audit import audit, audit_archive, audit_file, classify, select_candidates
from .errors import ArchiveError, AuditError, ImageProbeError
from .manifest import locate_manifest_images, locate_root
from .models import DEFAULT_PIXEL_THRESHOLD, Options
from .paths import resolve_reference
from .references import collect_used_references, extract_css_urls
from .report import build_report

__version__ = "1.0.0"

__all__ = [
    "ArchiveError",
    "ArchiveFile",
    "AuditError",
    "DEFAULT_PIXEL_THRESHOLD",
    "ImageProbeError",
    "Options",
    "audit",
    "audit_archive",
    "audit_file",
    "build_report",
    "classify",
    "collect_used_references",
    "extract_css_urls",
    "locate_manifest_images",
    "locate_root",
    "open_archive",
    "read_archive",
    "resolve_reference",
    "select_candidates",
]
