from datetime import datetime, timezone
import logging

from sqlalchemy import select

from app.database import session_scope
from app.models.package import PackageEntry
from app.schemas.packages import (
    PACKAGE_FIELDS,
    PackageCreate,
    PackageResponse,
    PackageUpdate,
)

LOGGER = logging.getLogger(__name__)


class PackageNotFound(LookupError):
    pass


class PackageStore:
    def create_package(self, payload: PackageCreate) -> PackageResponse:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            entry = PackageEntry(
                **payload.model_dump(include=set(PACKAGE_FIELDS)),
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            LOGGER.info("Created package id=%s", entry.id)
            return self._to_response(entry)

    def list_packages(self) -> list[PackageResponse]:
        with session_scope() as session:
            result = session.execute(select(PackageEntry).order_by(PackageEntry.id))
            return [self._to_response(entry) for entry in result.scalars().all()]

    def get_package(self, package_id: int) -> PackageResponse:
        with session_scope() as session:
            entry = session.get(PackageEntry, package_id)
            if entry is None:
                raise PackageNotFound("Package not found")
            return self._to_response(entry)

    def update_package(self, package_id: int, payload: PackageUpdate) -> PackageResponse:
        changes = payload.model_dump(include=set(PACKAGE_FIELDS), exclude_unset=True)
        with session_scope() as session:
            entry = session.get(PackageEntry, package_id)
            if entry is None:
                raise PackageNotFound("Package not found")
            for field, value in changes.items():
                setattr(entry, field, value)
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            LOGGER.info("Updated package id=%s fields=%s", package_id, sorted(changes))
            return self._to_response(entry)

    def delete_package(self, package_id: int) -> None:
        with session_scope() as session:
            entry = session.get(PackageEntry, package_id)
            if entry is None:
                raise PackageNotFound("Package not found")
            session.delete(entry)
        LOGGER.info("Deleted package id=%s", package_id)

    def _to_response(self, entry: PackageEntry) -> PackageResponse:
        return PackageResponse(
            id=entry.id,
            selected_image=entry.selected_image,
            name=entry.name,
            number_of_cameras=entry.number_of_cameras,
            waterproof_boxes=entry.waterproof_boxes,
            wire_length=entry.wire_length,
            hard_drive_capacity=entry.hard_drive_capacity,
            dvr=entry.dvr,
            dc_pins=entry.dc_pins,
            bnc_connectors=entry.bnc_connectors,
            package_price=entry.package_price,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


package_store = PackageStore()
