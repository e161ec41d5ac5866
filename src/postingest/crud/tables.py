"""Database table definition for the SQL-backed document store"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, String
from sqlmodel import Field, SQLModel


class StoredDocument(SQLModel, table=True):
    """One schemaless document; ``data`` holds every field except _id/_type"""
    __tablename__ = "documents"
    id: str = Field(..., sa_column=Column(String(128), primary_key=True))
    type: str = Field(..., index=True, nullable=False)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
