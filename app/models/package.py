from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base


class PackageEntry(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True)
    selected_image = Column(String(512), nullable=True)
    name = Column(String(255), nullable=True)
    number_of_cameras = Column(String(64), nullable=True)
    waterproof_boxes = Column(String(64), nullable=True)
    wire_length = Column(String(64), nullable=True)
    hard_drive_capacity = Column(String(64), nullable=True)
    dvr = Column(String(255), nullable=True)
    dc_pins = Column(String(64), nullable=True)
    bnc_connectors = Column(String(64), nullable=True)
    package_price = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
