"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    ready: bool
    records: int
    source: Optional[str]
    syncing: bool
    loading: bool
    online: bool
    error: Optional[str] = None


class SyncResponse(BaseModel):
    count: int
    source: Optional[str]
    error: Optional[str] = None


class VehicleOut(BaseModel):
    plate: str
    sticker: str
    model: str


class StudentOut(BaseModel):
    name: str
    grade: str


class HouseholdOut(BaseModel):
    vehicles: list[VehicleOut]
    students: list[StudentOut]
    father: str
    mother: str
    identification: str
    mobile: str
    home_phone: str
    father_email: str
    mother_email: str
    registration_year: str


class RecordHit(BaseModel):
    record: dict[str, str]
    household: HouseholdOut
    matched_fields: list[str]


class SearchResponse(BaseModel):
    query: str
    mode: str
    exact: bool
    total: int
    matched: int
    source: Optional[str]
    results: list[RecordHit]


class CacheInfoResponse(BaseModel):
    exists: bool
    count: int = 0
    size_bytes: int = 0
    captured_at: Optional[int] = None
    last_update: Optional[str] = None
    version: Optional[str] = None


class SourcesResponse(BaseModel):
    fast_feed_url: Optional[str]
    spreadsheet_url: Optional[str]


class ConnectivityRequest(BaseModel):
    online: bool


class ConnectivityResponse(BaseModel):
    online: bool
