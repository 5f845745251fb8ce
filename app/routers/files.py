from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from io import BytesIO
from urllib.parse import quote
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas import DownloadRequest, UploadResponse
from app.services.cipher import encode_key
from app.services.download_service import DownloadService
from app.services.upload_service import UploadService

router = APIRouter(tags=["Files"])


def _components(request: Request) -> dict:
    state = request.app.state
    return {
        "settings": state.settings,
        "cipher": state.cipher,
        "verifier": state.verifier,
        "blob_store": state.blob_store,
        "clock": state.clock,
    }


def get_upload_service(request: Request, db: Session = Depends(get_db)) -> UploadService:
    return UploadService(db, **_components(request))


def get_download_service(request: Request, db: Session = Depends(get_db)) -> DownloadService:
    return DownloadService(db, **_components(request))


@router.post("/files", response_model=UploadResponse)
async def upload_file(
    request: Request,
    service: UploadService = Depends(get_upload_service),
):
    result = await service.upload(request.headers, request.stream())
    return UploadResponse(id=str(result.file_id), key=encode_key(result.key))


@router.post("/files/{file_id}/download")
def download_file(
    file_id: str,
    body: DownloadRequest,
    request: Request,
    service: DownloadService = Depends(get_download_service),
):
    result = service.download(file_id, body.key, request.headers)

    headers = {}
    if result.metadata.file_name:
        headers["Content-Disposition"] = f'attachment; filename="{quote(result.metadata.file_name)}"'
    return StreamingResponse(
        BytesIO(result.content),
        media_type=result.metadata.content_type or "application/octet-stream",
        headers=headers,
    )
