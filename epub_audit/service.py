"""FastAPI application exposing the audit over HTTP."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .audit import audit_archive
from .errors import ArchiveError
from .logging import configure_logging, get_logger
from .models import Options
from .report import build_report

MAX_UPLOAD_BYTES = 100 * 1024 * 1024

logger = get_logger("service")


def create_app() -> FastAPI:
    """Create the FastAPI application serving /api/validate and /health."""
    app = FastAPI(title="EPUB Image Audit", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict:
        return {"ok": True}

    @app.post("/api/validate")
    async def validate(request: Request, epub: Optional[UploadFile] = File(None)) -> JSONResponse:
        if epub is None:
            return JSONResponse(status_code=400, content={"error": 'Missing file field "epub"'})

        data = await epub.read(MAX_UPLOAD_BYTES + 1)
        if len(data) > MAX_UPLOAD_BYTES:
            return JSONResponse(
                status_code=413,
                content={"error": f"File larger than {MAX_UPLOAD_BYTES // (1024 * 1024)} MB"},
            )

        query = request.query_params
        options = Options.from_flags(query)
        base_path = query.get("epubBasePath", "")

        def _run():
            return build_report(audit_archive(data, options), base_path)

        try:
            loop = asyncio.get_running_loop()
            report = await loop.run_in_executor(None, _run)
        except ArchiveError as e:
            logger.error("Audit of %s failed: %s", epub.filename, e)
            return JSONResponse(status_code=500, content={"error": str(e)})
        except Exception as e:
            logger.exception("Unexpected error auditing %s", epub.filename)
            return JSONResponse(status_code=500, content={"error": str(e) or "Server error"})
        return JSONResponse(content=report.to_dict())

    return app


def run_service(host: Optional[str] = None, port: Optional[int] = None) -> None:  # pragma: no cover
    import uvicorn

    configure_logging(verbose=bool(os.environ.get("EPUB_AUDIT_VERBOSE")))
    host = host or os.environ.get("HOST", "0.0.0.0")
    port = port or int(os.environ.get("PORT") or 6000)
    uvicorn.run(create_app(), host=host, port=port)


def main() -> None:  # pragma: no cover
    run_service()
