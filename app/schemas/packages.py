from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PACKAGE_FIELDS = (
    "selected_image",
    "name",
    "number_of_cameras",
    "waterproof_boxes",
    "wire_length",
    "hard_drive_capacity",
    "dvr",
    "dc_pins",
    "bnc_connectors",
    "package_price",
)


class PackageBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    selected_image: Optional[str] = Field(default=None, max_length=512)
    name: Optional[str] = Field(default=None, max_length=255)
    number_of_cameras: Optional[str] = Field(default=None, max_length=64)
    waterproof_boxes: Optional[str] = Field(default=None, max_length=64)
    wire_length: Optional[str] = Field(default=None, max_length=64)
    hard_drive_capacity: Optional[str] = Field(default=None, max_length=64)
    dvr: Optional[str] = Field(default=None, max_length=255)
    dc_pins: Optional[str] = Field(default=None, max_length=64)
    bnc_connectors: Optional[str] = Field(default=None, max_length=64)
    package_price: Optional[str] = Field(default=None, max_length=64)

    @field_validator(*PACKAGE_FIELDS, mode="before")
    @classmethod
    def coerce_to_text(cls, value):
        # Clients send counts and prices as numbers as often as strings.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class PackageCreate(PackageBase):
    pass


class PackageUpdate(PackageBase):
    pass


class PackageResponse(PackageBase):
    id: int = Field(alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str
