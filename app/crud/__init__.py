"""
CRUD operations for database models.

This layer keeps storage details out of the API routes and services.
"""

from app.crud import user

__all__ = ["user"]
