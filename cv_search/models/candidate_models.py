"""Pydantic models for candidate records stored in the vector index."""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class CandidateRecord(BaseModel):
    """
    One parsed CV ready to be written to the index.

    Without an embedding the indexing service embeds ``full_text`` itself.

    ``skills`` and ``education`` are kept in whatever shape the upstream parser
    produced (string, list or dict); the indexing service normalizes them.
    """
    cv_id: str = Field(..., min_length=1, alias="id")
    embedding: Optional[List[float]] = None
    full_text: str = ""
    filename: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: Any = None
    experience_years: Optional[int] = Field(None, ge=0, alias="yearsExperience")
    education: Any = None
    location: Optional[str] = None
    upload_date: Optional[datetime] = Field(None, alias="uploadDate")
    file_size: Optional[int] = Field(None, ge=0, alias="fileSize")
    stored_file_path: Optional[str] = Field(None, alias="storedFilePath")
    stored_filename: Optional[str] = Field(None, alias="storedFilename")

    class Config:
        populate_by_name = True


class StoredFileLocation(BaseModel):
    """Where the original CV file for a candidate lives in object storage."""
    cv_id: str
    stored_file_path: str
    stored_filename: Optional[str] = None
