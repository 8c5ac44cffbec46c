from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_package_store, require_admin_for_writes
from app.schemas.packages import (
    MessageResponse,
    PackageCreate,
    PackageResponse,
    PackageUpdate,
)
from app.services.packages import PackageNotFound, PackageStore

router = APIRouter(prefix="/packages", tags=["packages"])


@router.post(
    "",
    response_model=PackageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin_for_writes)],
)
def create_package(
    payload: PackageCreate, store: PackageStore = Depends(get_package_store)
) -> PackageResponse:
    return store.create_package(payload)


@router.get("", response_model=list[PackageResponse])
def list_packages(store: PackageStore = Depends(get_package_store)) -> list[PackageResponse]:
    return store.list_packages()


@router.get("/{package_id}", response_model=PackageResponse)
def get_package(
    package_id: int, store: PackageStore = Depends(get_package_store)
) -> PackageResponse:
    try:
        return store.get_package(package_id)
    except PackageNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.put(
    "/{package_id}",
    response_model=PackageResponse,
    dependencies=[Depends(require_admin_for_writes)],
)
def update_package(
    package_id: int,
    payload: PackageUpdate,
    store: PackageStore = Depends(get_package_store),
) -> PackageResponse:
    try:
        return store.update_package(package_id, payload)
    except PackageNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete(
    "/{package_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin_for_writes)],
)
def delete_package(
    package_id: int, store: PackageStore = Depends(get_package_store)
) -> MessageResponse:
    try:
        store.delete_package(package_id)
    except PackageNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MessageResponse(message="Package deleted successfully")
