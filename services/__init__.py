"""
Business logic services for the Contact Identity Resolver
Contains the identity resolution algorithm, its pure component
functions and the contact storage collaborator.
"""

from .errors import IdentityResolutionError, InvalidRequest, InvariantViolation, StorageFailure
from .identity_resolver import IdentityResolver

__all__ = [
    "IdentityResolver",
    "IdentityResolutionError",
    "InvalidRequest",
    "InvariantViolation",
    "StorageFailure"
]
