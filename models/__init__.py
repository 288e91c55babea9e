"""
Database models package for the Contact Identity Resolver
Contains the SQLAlchemy Contact model and engine helpers
"""

from .base import Base, create_database_engine, utcnow
from .contact import Contact, LinkPrecedence, EMAIL_MAX_LENGTH, PHONE_MAX_LENGTH

__all__ = [
    'Base', 'create_database_engine', 'utcnow',
    'Contact', 'LinkPrecedence', 'EMAIL_MAX_LENGTH', 'PHONE_MAX_LENGTH'
]
