import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from jose import ExpiredSignatureError, JWTError

from odportal.api.deps import get_document_storage
from odportal.core.security import decode_document_token
from odportal.services.storage import OPAQUE_CONTENT_TYPE, DocumentStorage, LocalDocumentStorage, sanitize_filename

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/documents/download")
def download_document(
    token: str = Query(..., min_length=1),
    storage: DocumentStorage = Depends(get_document_storage),
) -> Response:
    """Serve a locally stored document behind a signed, expiring link."""
    if not isinstance(storage, LocalDocumentStorage):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Documents are served by object storage")

    try:
        claims = decode_document_token(token)
    except ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Document link has expired") from exc
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid document link") from exc

    key = claims.get("key")
    if not key or claims.get("bucket") != storage.bucket:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid document link")
    if not storage.exists(key):
        logger.warning("Signed link points at missing document %s", key)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    data, content_type = storage.open(key)
    filename = sanitize_filename(key.rsplit("/", 1)[-1])
    disposition = "attachment" if content_type == OPAQUE_CONTENT_TYPE else "inline"
    return Response(
        content=data,
        media_type=content_type,
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'},
    )
