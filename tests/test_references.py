"""Tests for epub_audit.references."""

from __future__ import annotations

import pytest

from epub_audit.archive import ArchiveFile, open_archive
from epub_audit.models import Options, Skip
from epub_audit.references import (
    ElementTreeTree,
    SoupTree,
    collect_references,
    collect_used_references,
    document_kind,
    extract_css_urls,
    scan_document,
)
from tests.conftest import build_zip, xhtml

SVG_DOC = """<?xml version="1.0"?>
<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">
  <style>rect {{ fill: url("#grad"); }} .bg {{ background: url(../images/bg.png); }}</style>
  <image xlink:href="{xlink}" width="10" height="10"/>
  <image href="{plain}" width="10" height="10"/>
</svg>
"""


def test_extract_css_urls_quoting_and_whitespace() -> None:
    css = """
    a { background: url(plain.png); }
    b { background: url( 'single.png' ); }
    c { background: url("double.png") no-repeat; }
    @media print { d { background-image: url(  nested.gif  ) } }
    e { content: image-set(url(set.png) 1x); }
    """
    assert extract_css_urls(css) == ["plain.png", "single.png", "double.png", "nested.gif", "set.png"]


def test_extract_css_urls_ignores_comments_and_other_functions() -> None:
    css = "/* url(commented.png) */ a { color: rgb(1, 2, 3); font-family: 'url(x)'; }"
    assert extract_css_urls(css) == []


def test_extract_css_urls_in_declaration_text() -> None:
    assert extract_css_urls("background:url('../images/c.png')") == ["../images/c.png"]


def test_soup_tree_queries() -> None:
    tree = SoupTree(xhtml('<p style="color:red">x</p><img src="a.png"/><img alt="none"/>'), xml=True)
    assert [tree.attribute(n, "src") for n in tree.find_all("img[src]")] == ["a.png"]
    assert len(tree.find_all("img")) == 2
    assert [tree.attribute(n, "style") for n in tree.find_all("[style]")] == ["color:red"]
    assert tree.text(tree.find_all("p")[0]) == "x"


def test_element_tree_queries_namespaced_attributes() -> None:
    tree = ElementTreeTree(SVG_DOC.format(xlink="x.png", plain="y.png").encode())
    images = tree.find_all("image")
    assert [tree.attribute(n, "xlink:href") for n in images] == ["x.png", None]
    assert [tree.attribute(n, "href") for n in images] == [None, "y.png"]
    assert "bg.png" in tree.text(tree.find_all("style")[0])


def test_unsupported_selector() -> None:
    with pytest.raises(ValueError):
        SoupTree("<p/>").find_all("div > p")


def test_document_kind_follows_options() -> None:
    assert document_kind("a/ch1.XHTML", Options()) == "xhtml"
    assert document_kind("a/ch1.html", Options()) is None
    assert document_kind("a/ch1.htm", Options(include_html=True)) == "html"
    assert document_kind("a/s.css", Options()) is None
    assert document_kind("a/s.css", Options(include_css=True)) == "css"
    assert document_kind("a/v.svg", Options(include_svg=True)) == "svg"
    assert document_kind("a/pic.png", Options(include_svg=True, include_css=True)) is None


def test_markup_reference_rules() -> None:
    body = """
      <img src="images/a.png"/>
      <picture><source srcset="images/b-1x.png 1x, images/b-2x.png 2x"/></picture>
      <img src="images/c.png" srcset="images/c-small.png 480w,images/c-large.png 1024w"/>
      <div style="background-image: url('images/d.png')">x</div>
      <svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">
        <image xlink:href="images/e.png"/>
        <image href="images/f.png"/>
      </svg>
      <style>p { background: url(images/g.png) }</style>
    """
    member = ArchiveFile("OEBPS/ch1.xhtml", xhtml(body).encode())

    refs = scan_document(member, Options())
    assert set(refs) == {
        "images/a.png",
        "images/b-1x.png",
        "images/b-2x.png",
        "images/c.png",
        "images/c-small.png",
        "images/c-large.png",
        "images/d.png",
    }

    refs = scan_document(member, Options(include_svg=True, include_css=True))
    assert {"images/e.png", "images/f.png", "images/g.png"} <= set(refs)


def test_html_documents_use_html_parser() -> None:
    html = "<html><body><IMG SRC='pics/a.png'><p style=\"background:url(pics/b.png)\">x</body></html>"
    member = ArchiveFile("ch.html", html.encode())
    assert set(scan_document(member, Options(include_html=True))) == {"pics/a.png", "pics/b.png"}
    assert scan_document(member, Options()) == []


def test_svg_document_references() -> None:
    member = ArchiveFile(
        "OEBPS/vector/pic.svg", SVG_DOC.format(xlink="../images/x.png", plain="y.png").encode()
    )
    refs = scan_document(member, Options(include_svg=True))
    assert refs == ["../images/x.png", "y.png", "#grad", "../images/bg.png"]


def test_malformed_svg_is_skipped() -> None:
    member = ArchiveFile("OEBPS/bad.svg", b"<svg><image href='a.png'></svg")
    result = scan_document(member, Options(include_svg=True))
    assert isinstance(result, Skip)
    assert result.path == "OEBPS/bad.svg"


def test_collect_resolves_against_documents_and_root() -> None:
    archive = open_archive(build_zip({
        "OEBPS/text/ch1.xhtml": xhtml(
            '<img src="../images/a.png"/><img src="http://x.org/b.png"/>'
            '<img src="../../META-INF/c.png"/><img src="../images/a.png#frag"/>'
        ),
        "OEBPS/styles/main.css": "body { background: url('../images/c.png') }",
        "OEBPS/bad.svg": "<svg",
        "OEBPS/images/a.png": b"",
    }))

    collection = collect_references(archive, "OEBPS", Options(include_css=True, include_svg=True))
    assert collection.used == {"OEBPS/images/a.png", "OEBPS/images/c.png"}
    assert [s.path for s in collection.skipped] == ["OEBPS/bad.svg"]

    assert collect_used_references(archive, "OEBPS", Options()) == {"OEBPS/images/a.png"}


def test_deeply_nested_stylesheet_does_not_abort_collection() -> None:
    archive = open_archive(build_zip({
        "OEBPS/s/deep.css": "a{b:" + "(" * 3000 + "}",
        "OEBPS/s/ok.css": "p { background: url(../images/a.png) }",
        "OEBPS/images/a.png": b"",
    }))
    collection = collect_references(archive, "OEBPS", Options(include_css=True))
    assert collection.used == {"OEBPS/images/a.png"}


def test_deeply_nested_css_keeps_inner_urls() -> None:
    css = "a{b:" + "(" * 3000 + "url(deep.png)" + ")" * 3000 + "}"
    assert extract_css_urls(css) == ["deep.png"]


def test_extraction_errors_are_not_turned_into_skips(monkeypatch: pytest.MonkeyPatch) -> None:
    from epub_audit import references

    def broken(tree, options):
        raise ValueError("Unsupported selector: 'div > p'")

    monkeypatch.setattr(references, "markup_references", broken)
    with pytest.raises(ValueError):
        scan_document(ArchiveFile("ch1.xhtml", xhtml("<p/>").encode()), Options())
