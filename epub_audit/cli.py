"""epub-audit: list unused and oversized images in an EPUB.

Usage:
    epub-audit INPUT.epub [options]

Options:
    --include-html             Also scan .html/.htm documents
    --include-css              Scan url() references in stylesheets and <style>
    --include-svg              Scan SVG <image> links and embedded styles
    --search-all-images        Audit images outside "images" folders too
    --follow-manifest-only     Only audit images declared in the OPF manifest
    -p, --pixel-threshold N    Flag images with at least N pixels (default 5,600,000)
    -b, --base-path PREFIX     Prefix prepended to paths in the report
    --json                     Print the report as JSON
    -v, --verbose              Log each decision to stderr
"""

from __future__ import annotations

import argparse
import json
import pathlib
import sys

from .audit import audit_file
from .errors import ArchiveError
from .logging import configure_logging
from .models import DEFAULT_PIXEL_THRESHOLD, Options, parse_threshold
from .report import build_report


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="epub-audit", description="Find unreferenced and oversized images in an EPUB"
    )
    p.add_argument("epub", type=pathlib.Path, help="Input .epub file")
    p.add_argument("--include-html", action="store_true",
                   help="Also scan .html/.htm documents")
    p.add_argument("--include-css", action="store_true",
                   help="Scan url() references in stylesheets")
    p.add_argument("--include-svg", action="store_true",
                   help="Scan SVG <image> links and embedded <style> blocks")
    p.add_argument("--search-all-images", action="store_true",
                   help="Audit images outside folders named 'images'")
    p.add_argument("--follow-manifest-only", action="store_true",
                   help="Only audit images declared in the OPF manifest")
    p.add_argument("-p", "--pixel-threshold", type=parse_threshold, default=DEFAULT_PIXEL_THRESHOLD,
                   help=f"Pixel count at which an image is oversized (default {DEFAULT_PIXEL_THRESHOLD:,})")
    p.add_argument("-b", "--base-path", default="",
                   help="Location of the unpacked book, prepended to reported paths")
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def options_from_args(args) -> Options:
    return Options(
        include_html=args.include_html,
        include_css=args.include_css,
        include_svg=args.include_svg,
        search_all_images=args.search_all_images,
        follow_manifest_only=args.follow_manifest_only,
        pixel_threshold=args.pixel_threshold,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose)

    try:
        result = audit_file(args.epub, options_from_args(args))
    except ArchiveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = build_report(result, args.base_path)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        if args.verbose:
            print(f"Content root: {report.content_root or '(archive root)'}")
        print(report.report_text, end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
