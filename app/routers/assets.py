from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.dependencies import get_asset_store, require_admin_for_writes
from app.schemas.assets import ImageEntry, ImageUploadResponse
from app.schemas.packages import MessageResponse
from app.services.assets import AssetError, AssetNotFound, AssetStore, InvalidAssetName

router = APIRouter(tags=["assets"])


@router.post(
    "/upload-image",
    response_model=ImageUploadResponse,
    dependencies=[Depends(require_admin_for_writes)],
)
def upload_image(
    image: Optional[UploadFile] = File(default=None),
    store: AssetStore = Depends(get_asset_store),
) -> ImageUploadResponse:
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded.")
    try:
        stored = store.save(image.filename, image.file)
    except InvalidAssetName as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AssetError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    finally:
        image.file.close()
    return ImageUploadResponse(file_path=stored.file_path)


@router.delete(
    "/delete-image/{image_name}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin_for_writes)],
)
def delete_image(image_name: str, store: AssetStore = Depends(get_asset_store)) -> MessageResponse:
    try:
        store.delete(image_name)
    except InvalidAssetName as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AssetNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except AssetError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return MessageResponse(message="Image deleted")


@router.get("/images", response_model=list[ImageEntry])
def list_images(store: AssetStore = Depends(get_asset_store)) -> list[ImageEntry]:
    return [
        ImageEntry(file_path=asset.file_path, name=asset.name)
        for asset in store.list_assets()
    ]
