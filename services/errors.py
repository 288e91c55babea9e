"""
Error taxonomy for identity resolution
"""


class IdentityResolutionError(Exception):
    """Base class for errors raised while resolving a contact fact"""


class InvalidRequest(IdentityResolutionError):
    """Neither an email nor a phone number was supplied"""


class StorageFailure(IdentityResolutionError):
    """A read or write against the contact store failed; nothing was committed"""


class InvariantViolation(IdentityResolutionError):
    """
    Stored contacts contradict what a previous query returned

    Raised internally when component expansion comes back empty after seed
    contacts were found. The resolver handles it by creating a new primary.
    """
