from __future__ import annotations

import io
import zipfile
from typing import Dict, Union

import pytest
from PIL import Image

CONTAINER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def png_bytes(width: int = 2, height: int = 2) -> bytes:
    buf = io.BytesIO()
    Image.new("L", (width, height)).save(buf, format="PNG")
    return buf.getvalue()


def container_xml(opf_path: str) -> str:
    return CONTAINER_XML.format(path=opf_path)


def opf_xml(items: Dict[str, str]) -> str:
    """Package document whose manifest lists href -> media-type."""
    entries = "\n".join(
        f'    <item id="i{n}" href="{href}" media-type="{media}"/>'
        for n, (href, media) in enumerate(items.items())
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="uid">
  <manifest>
{entries}
  </manifest>
  <spine/>
</package>
"""


def xhtml(body: str) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head><title>t</title></head>
<body>{body}</body>
</html>
"""


def build_zip(files: Dict[str, Union[str, bytes]]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as z:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            z.writestr(name, content)
    return buf.getvalue()


@pytest.fixture
def small_png() -> bytes:
    return png_bytes()
