from fastapi import APIRouter, Depends
from app.api.deps import require_user_id, get_stream_storage
from app.core.exceptions import StreamNotFoundError
from app.schemas.stream import StreamData
from app.services.stream_storage import StreamStorage

router = APIRouter(tags=["Streams"])

@router.put("/{stream_id}",
    description="Save the state of an in-flight response stream",
    responses={
        200: {"description": "Stream data stored"},
        401: {"description": "Not authenticated"}
    })
def store_stream(
    stream_id: str,
    data: StreamData,
    user_id: str = Depends(require_user_id),
    storage: StreamStorage = Depends(get_stream_storage)
):
    storage.store(stream_id, data)
    return {"detail": "Stream stored", "ttl": storage.ttl}

@router.get("/{stream_id}",
    response_model=StreamData,
    description="Resume an in-flight response stream",
    responses={
        200: {"description": "Stored stream data"},
        401: {"description": "Not authenticated"},
        404: {"description": "Stream not found or expired"}
    })
def get_stream(
    stream_id: str,
    user_id: str = Depends(require_user_id),
    storage: StreamStorage = Depends(get_stream_storage)
) -> StreamData:
    data = storage.get(stream_id)
    if data is None:
        raise StreamNotFoundError()
    return data

@router.delete("/{stream_id}",
    description="Discard stream data once the response completed")
def delete_stream(
    stream_id: str,
    user_id: str = Depends(require_user_id),
    storage: StreamStorage = Depends(get_stream_storage)
):
    storage.delete(stream_id)
    return {"detail": "Stream deleted"}
