"""Turn an audit result into report records and a plain-text summary."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from .models import AuditResult, CandidateImage, Skip


def display_path(internal_path: str, base_path: str = "") -> str:
    """Join a caller-supplied location of the unpacked book with an internal path."""
    base = base_path.rstrip("/\\") if base_path else ""
    if not base:
        return internal_path
    if "\\" in base and "/" not in base:
        return base + "\\" + internal_path.replace("/", "\\")
    return f"{base}/{internal_path}"


@dataclass(frozen=True)
class ImageEntry:
    file: str
    internal_path: str
    full_path: str

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "internalPath": self.internal_path, "fullPath": self.full_path}


@dataclass(frozen=True)
class OversizedEntry(ImageEntry):
    width: int = 0
    height: int = 0
    px: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(width=self.width, height=self.height, px=self.px)
        return d


@dataclass
class AuditReport:
    unreferenced: List[ImageEntry]
    oversized: List[OversizedEntry]
    report_text: str
    content_root: str
    epub_base_path: str = ""
    skipped: List[Skip] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unreferenced": [e.to_dict() for e in self.unreferenced],
            "oversized": [e.to_dict() for e in self.oversized],
            "reportText": self.report_text,
            "contentRoot": self.content_root,
            "epubBasePath": self.epub_base_path,
            "skipped": [asdict(s) for s in self.skipped],
        }


def _entry(image: CandidateImage, base_path: str) -> ImageEntry:
    return ImageEntry(image.name, image.path, display_path(image.path, base_path))


def format_report(
    unreferenced: List[ImageEntry], oversized: List[OversizedEntry], pixel_threshold: int
) -> str:
    lines = ["**Unused Images**"]
    if unreferenced:
        lines += [f"{i}. {e.file} - {e.full_path}" for i, e in enumerate(unreferenced, 1)]
    else:
        lines.append("None")
    lines.append("")
    lines.append(f"**Images Exceeding Pixel Limit (>= {pixel_threshold:,} pixels)**")
    if oversized:
        lines += [
            f"{i}. {e.file}: {e.width}x{e.height} = {e.px} pixels - {e.full_path}"
            for i, e in enumerate(oversized, 1)
        ]
    else:
        lines.append("None")
    return "\n".join(lines) + "\n"


def build_report(result: AuditResult, epub_base_path: str = "") -> AuditReport:
    base = epub_base_path.rstrip("/\\") if epub_base_path else ""
    classification = result.classification

    unreferenced = [_entry(image, base) for image in classification.unreferenced]
    oversized = [
        OversizedEntry(
            o.image.name,
            o.image.path,
            display_path(o.image.path, base),
            width=o.width,
            height=o.height,
            px=o.pixels,
        )
        for o in classification.oversized
    ]
    return AuditReport(
        unreferenced=unreferenced,
        oversized=oversized,
        report_text=format_report(unreferenced, oversized, result.options.pixel_threshold),
        content_root=result.content_root,
        epub_base_path=base,
        skipped=list(result.skipped),
    )
