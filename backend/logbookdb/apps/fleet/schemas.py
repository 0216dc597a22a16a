"""
Pydantic schemas for the fleet app.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AircraftCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    tail_number: str = Field(alias="tailNumber", min_length=1, max_length=16)
    make: str = Field(min_length=1, max_length=64)
    model: str = Field(min_length=1, max_length=64)
    serial_number: Optional[str] = Field(default=None, alias="serialNumber", max_length=64)
    year: Optional[int] = Field(default=None, ge=1900)
