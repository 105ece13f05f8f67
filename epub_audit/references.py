"""Collect the archive paths referenced by XHTML, HTML, CSS and SVG documents."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Iterator, List, Optional, Protocol, Tuple, Union
from xml.etree import ElementTree as ET

import tinycss2
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from .archive import ArchiveFile, ArchiveFileMap
from .logging import get_logger
from .models import Options, Skip
from .paths import resolve_reference

logger = get_logger("references")

PRIMARY_DOCUMENT_EXTENSIONS = (".xhtml",)
HTML_DOCUMENT_EXTENSIONS = (".html", ".htm")
STYLESHEET_EXTENSIONS = (".css",)
VECTOR_EXTENSIONS = (".svg",)

XLINK_NS = "http://www.w3.org/1999/xlink"
_KNOWN_PREFIXES = {"xlink": XLINK_NS, "xml": "http://www.w3.org/XML/1998/namespace"}

_SELECTOR_RE = re.compile(r"^\s*([\w:.-]*)\s*(?:\[\s*([\w:.-]+)\s*\])?\s*$")


class MarkupTree(Protocol):
    """The few queries the collector needs from a parsed document."""

    def find_all(self, selector: str) -> List[Any]: ...

    def attribute(self, node: Any, name: str) -> Optional[str]: ...

    def text(self, node: Any) -> str: ...


def _parse_selector(selector: str) -> Tuple[Optional[str], Optional[str]]:
    """'img[src]' -> ('img', 'src'); '[style]' -> (None, 'style'); 'image' -> ('image', None)."""
    m = _SELECTOR_RE.match(selector)
    if not m or not (m.group(1) or m.group(2)):
        raise ValueError(f"Unsupported selector: {selector!r}")
    return m.group(1) or None, m.group(2)


class SoupTree:
    """BeautifulSoup-backed tree. ``xml=True`` keeps namespaces (XHTML)."""

    def __init__(self, markup: str, xml: bool = False):
        self.soup = BeautifulSoup(markup, "xml" if xml else "html.parser")

    def find_all(self, selector: str) -> List[Any]:
        name, attr = _parse_selector(selector)
        attrs = {attr: True} if attr else {}
        return list(self.soup.find_all(name or True, attrs=attrs))

    def attribute(self, node: Any, name: str) -> Optional[str]:
        value = node.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value

    def text(self, node: Any) -> str:
        return node.get_text()


class ElementTreeTree:
    """Strict XML tree. Tag and attribute names match on their local part or
    on a well-known prefix such as ``xlink:href``. Raises ``ET.ParseError``
    for malformed input."""

    def __init__(self, data: Union[str, bytes]):
        self.root = ET.fromstring(data)

    def find_all(self, selector: str) -> List[Any]:
        name, attr = _parse_selector(selector)
        found = []
        for el in self.root.iter():
            if not isinstance(el.tag, str):
                continue
            if name and _local_name(el.tag) != name:
                continue
            if attr and self.attribute(el, attr) is None:
                continue
            found.append(el)
        return found

    def attribute(self, node: Any, name: str) -> Optional[str]:
        if ":" in name:
            prefix, local = name.split(":", 1)
            ns = _KNOWN_PREFIXES.get(prefix)
            return node.get(f"{{{ns}}}{local}") if ns else node.get(name)
        return node.get(name)

    def text(self, node: Any) -> str:
        return "".join(node.itertext())


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def extract_css_urls(css: str) -> List[str]:
    """Every ``url(...)`` argument in ``css``, quoted or not, in source order."""
    tokens = tinycss2.parse_component_value_list(css, skip_comments=True)
    return list(_walk_css_urls(tokens))


def _walk_css_urls(tokens: Iterable[Any]) -> Iterator[str]:
    # explicit stack: stylesheets can nest blocks deeper than the recursion limit
    stack = [iter(tokens)]
    while stack:
        token = next(stack[-1], None)
        if token is None:
            stack.pop()
            continue
        if token.type == "url":
            yield token.value
        elif token.type == "function":
            if token.lower_name == "url":
                for arg in token.arguments:
                    if arg.type == "string":
                        yield arg.value
                        break
            else:
                stack.append(iter(token.arguments))
        elif token.type in ("() block", "[] block", "{} block"):
            stack.append(iter(token.content))


def _srcset_urls(srcset: str) -> Iterator[str]:
    for part in srcset.split(","):
        words = part.split()
        if words:
            yield words[0]


def _svg_image_href(tree: MarkupTree, node: Any) -> Optional[str]:
    return tree.attribute(node, "href") or tree.attribute(node, "xlink:href")


def markup_references(tree: MarkupTree, options: Options) -> List[str]:
    refs = []
    for img in tree.find_all("img[src]"):
        refs.append(tree.attribute(img, "src"))
    for node in tree.find_all("[srcset]"):
        refs.extend(_srcset_urls(tree.attribute(node, "srcset") or ""))
    for node in tree.find_all("[style]"):
        refs.extend(extract_css_urls(tree.attribute(node, "style") or ""))
    if options.include_css:
        for style in tree.find_all("style"):
            refs.extend(extract_css_urls(tree.text(style)))
    if options.include_svg:
        for image in tree.find_all("image"):
            refs.append(_svg_image_href(tree, image))
    return [ref for ref in refs if ref]


def vector_references(tree: MarkupTree) -> List[str]:
    refs = [_svg_image_href(tree, image) for image in tree.find_all("image")]
    for style in tree.find_all("style"):
        refs.extend(extract_css_urls(tree.text(style)))
    return [ref for ref in refs if ref]


def document_kind(path: str, options: Options) -> Optional[str]:
    """'xhtml', 'html', 'css', 'svg' or None when the file is not scanned."""
    lower = path.lower()
    if lower.endswith(PRIMARY_DOCUMENT_EXTENSIONS):
        return "xhtml"
    if options.include_html and lower.endswith(HTML_DOCUMENT_EXTENSIONS):
        return "html"
    if options.include_css and lower.endswith(STYLESHEET_EXTENSIONS):
        return "css"
    if options.include_svg and lower.endswith(VECTOR_EXTENSIONS):
        return "svg"
    return None


def scan_document(member: ArchiveFile, options: Options) -> Union[List[str], Skip]:
    """Raw references written in one document, or a Skip if it cannot be parsed."""
    kind = document_kind(member.path, options)
    if kind is None:
        return []
    if kind == "css":
        return extract_css_urls(member.text())
    try:
        if kind == "svg":
            tree = ElementTreeTree(member.data)
        else:
            tree = SoupTree(member.text(), xml=(kind == "xhtml"))
    except (ET.ParseError, ValueError, LookupError, ParserRejectedMarkup, RecursionError) as e:
        logger.debug("Skipping %s: %s", member.path, e)
        return Skip(member.path, f"could not parse {kind}: {e}")
    if kind == "svg":
        return vector_references(tree)
    return markup_references(tree, options)


@dataclass(frozen=True)
class ReferenceCollection:
    used: FrozenSet[str]
    skipped: Tuple[Skip, ...] = ()


def collect_references(archive: ArchiveFileMap, root: str, options: Options) -> ReferenceCollection:
    """Resolve the references of every scanned document against ``root``."""
    used = set()
    skipped = []
    for path, member in archive.items():
        scanned = scan_document(member, options)
        if isinstance(scanned, Skip):
            skipped.append(scanned)
            continue
        for ref in scanned:
            resolved = resolve_reference(path, ref, root)
            if resolved:
                used.add(resolved)
            else:
                logger.debug("%s: unresolvable reference %r", path, ref)
    logger.debug("Collected %d referenced paths, skipped %d documents", len(used), len(skipped))
    return ReferenceCollection(frozenset(used), tuple(skipped))


def collect_used_references(archive: ArchiveFileMap, root: str, options: Options) -> FrozenSet[str]:
    return collect_references(archive, root, options).used
