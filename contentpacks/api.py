"""
Content Package API

Endpoints for retrieving, uploading and deleting content packages:
    GET    /{content_id}              - the package archive ({id}.zip)
    GET    /{content_id}?metadata     - metadata (not implemented, 501)
    GET    /{content_id}/{file_path}  - a file from the extracted package
    POST   /upload?contentId=ID       - upload (multipart field "file")
    DELETE /{content_id}              - delete archive and extracted folder

The store and upload pipeline live on app.state (see server.py).
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, RedirectResponse

from .errors import DeletionError, InvalidPathError, NotFoundError, UnpackError
from .metadata import resolve_metadata_request
from .store import PackageStore
from .upload import UploadPipeline

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content Packages"])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_store(request: Request) -> PackageStore:
    """Package store configured for this app"""
    store = getattr(request.app.state, "package_store", None)
    if store is None:
        raise HTTPException(503, "No content path configured. Local files will not be delivered.")
    return store


def get_upload_pipeline(request: Request) -> UploadPipeline:
    pipeline = getattr(request.app.state, "upload_pipeline", None)
    if pipeline is None:
        raise HTTPException(503, "No content path configured. Uploads are disabled.")
    return pipeline


def overview_url(request: Request, content_id: str) -> str:
    """Redirect target after a successful upload"""
    base_path = getattr(request.app.state, "base_path", "")
    return f"{base_path}/overview?success={quote(content_id, safe='')}"


# =============================================================================
# UPLOAD
# =============================================================================

@router.post("/upload")
async def upload_package(
    request: Request,
    content_id: str = Query(..., alias="contentId", description="ID of the content package"),
    file: UploadFile = File(..., description="Zip archive of the content package")
):
    """
    Store and unpack an uploaded content package.

    An existing package with the same ID is replaced. On success the client
    is redirected (303) to the overview page.
    """
    pipeline = get_upload_pipeline(request)
    redirect_url = overview_url(request, content_id)

    try:
        result = await pipeline.accept_upload(content_id, file.file, redirect_url)
    except InvalidPathError as e:
        raise HTTPException(400, str(e))
    except UnpackError as e:
        logger.warning(f"Upload of content package {content_id} failed: {e}")
        raise HTTPException(415, f"Failed to extract content: {e}")
    finally:
        await file.close()

    return RedirectResponse(result.redirect_url, status_code=303)


# =============================================================================
# PACKAGE ARCHIVES
# =============================================================================

@router.get("/{content_id}")
async def get_package(request: Request, content_id: str):
    """
    Download the archive of a content package.

    With a `metadata` query parameter, answers with the metadata placeholder.
    """
    if "metadata" in request.query_params:
        return resolve_metadata_request(content_id)

    store = get_store(request)
    try:
        archive = store.archive_file(content_id)
    except InvalidPathError as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))

    return FileResponse(
        path=archive,
        media_type="application/zip",
        filename=archive.name
    )


@router.delete("/{content_id}")
async def delete_package(request: Request, content_id: str):
    """Delete a content package (archive and extracted folder)."""
    store = get_store(request)
    try:
        await run_in_threadpool(store.delete_package, content_id)
    except InvalidPathError as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    except DeletionError as e:
        logger.error(f"Deletion of content package {content_id} failed: {e}")
        raise HTTPException(500, str(e))

    return Response(status_code=200)


# =============================================================================
# PACKAGE FILES
# =============================================================================

@router.get("/{content_id}/{file_path:path}")
async def get_package_file(request: Request, content_id: str, file_path: str):
    """
    Serve a file from an extracted content package.

    Example: /demo/index.html -> CONTENT_PATH/demo/index.html
    """
    store = get_store(request)
    try:
        member = store.member_file(content_id, file_path)
    except InvalidPathError as e:
        raise HTTPException(400, str(e))
    except NotFoundError as e:
        raise HTTPException(404, str(e))

    return FileResponse(path=member)
