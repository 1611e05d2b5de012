"""Declarative base for Post Store models."""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for tables in the Post Store database."""
