# src/party_pulse/db/__init__.py
"""Database configuration and utilities."""

from .session import Base, PartyStore, create_store

__all__ = ["Base", "PartyStore", "create_store"]
