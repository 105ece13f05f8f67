"""Data structures shared by the audit stages."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional, Tuple

DEFAULT_PIXEL_THRESHOLD = 5_600_000

_TRUE = "true"

# query-string flag -> Options field
_FLAG_ALIASES = {
    "includeHtml": "include_html",
    "includeCss": "include_css",
    "includeSvg": "include_svg",
    "searchAllImages": "search_all_images",
    "followManifestOnly": "follow_manifest_only",
    "followOpfManifestOnly": "follow_manifest_only",
    "pixelThreshold": "pixel_threshold",
}

_BOOLEAN_FIELDS = frozenset(
    ("include_html", "include_css", "include_svg", "search_all_images", "follow_manifest_only")
)


@dataclass(frozen=True)
class Options:
    """Switches controlling which documents are scanned and which images audited."""

    include_html: bool = False
    include_css: bool = False
    include_svg: bool = False
    search_all_images: bool = False
    follow_manifest_only: bool = False
    pixel_threshold: int = DEFAULT_PIXEL_THRESHOLD

    @classmethod
    def from_flags(cls, flags: Mapping[str, Any]) -> "Options":
        """Build options from string flags such as an HTTP query string.

        A boolean flag is on only when its value is ``"true"``. A threshold
        that is missing, not a number, or not positive falls back to
        ``DEFAULT_PIXEL_THRESHOLD``.
        """
        values: dict = {}
        for key, raw in flags.items():
            name = _FLAG_ALIASES.get(key, key)
            if name == "pixel_threshold":
                values[name] = parse_threshold(raw)
            elif name in _BOOLEAN_FIELDS:
                values[name] = str(raw).strip().lower() == _TRUE
        return cls(**values)


def parse_threshold(raw: Any) -> int:
    if raw is None or raw == "":
        return DEFAULT_PIXEL_THRESHOLD
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_PIXEL_THRESHOLD
    return value if value > 0 else DEFAULT_PIXEL_THRESHOLD


@dataclass(frozen=True)
class CandidateImage:
    path: str
    file_ext: str

    @property
    def name(self) -> str:
        return posixpath.basename(self.path)

    @classmethod
    def from_path(cls, path: str) -> "CandidateImage":
        return cls(path, posixpath.splitext(path)[1].lower())


@dataclass(frozen=True)
class Skip:
    """A document or image that was left out because it could not be read."""

    path: str
    reason: str


@dataclass(frozen=True)
class OversizedImage:
    image: CandidateImage
    width: int
    height: int

    @property
    def pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class ClassificationResult:
    unreferenced: Tuple[CandidateImage, ...] = ()
    oversized: Tuple[OversizedImage, ...] = ()
    skipped: Tuple[Skip, ...] = ()


@dataclass(frozen=True)
class PackageLocation:
    """Where the content lives inside the archive."""

    root: str = ""
    package_path: Optional[str] = None
    manifest_images: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class AuditResult:
    options: Options
    location: PackageLocation
    candidates: Tuple[CandidateImage, ...]
    used: FrozenSet[str]
    classification: ClassificationResult
    skipped: Tuple[Skip, ...] = field(default=())

    @property
    def content_root(self) -> str:
        return self.location.root
