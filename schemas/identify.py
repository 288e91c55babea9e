"""
Pydantic schemas for the /identify endpoint
Handles request cleaning and response serialization
"""

import math
from typing import List, Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.contact import EMAIL_MAX_LENGTH, PHONE_MAX_LENGTH

# Largest float whose integer value is exact
MAX_EXACT_FLOAT = 2 ** 53


class IdentifyRequest(BaseModel):
    """
    Request schema for the /identify endpoint

    Blank values are treated as absent. Whether at least one identifier is
    present is decided by the resolver, which raises InvalidRequest.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"email": "lorraine@hillvalley.edu", "phoneNumber": "123456"},
                {"email": "mcfly@hillvalley.edu", "phoneNumber": None},
                {"email": None, "phoneNumber": "123456"},
            ]
        },
    )

    email: Optional[str] = Field(
        None,
        description="Customer email address",
        examples=["customer@example.com", None]
    )
    phoneNumber: Optional[str] = Field(
        None,
        description="Customer phone number",
        examples=["123456", None]
    )

    @field_validator('email', mode='before')
    @classmethod
    def clean_email(cls, v) -> Optional[str]:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError('Email must be a string')
        v = v.strip()
        if len(v) > EMAIL_MAX_LENGTH:
            raise ValueError(f'Email must be at most {EMAIL_MAX_LENGTH} characters')
        return v or None

    @field_validator('phoneNumber', mode='before')
    @classmethod
    def clean_phone_number(cls, v) -> Optional[str]:
        """
        Accept phone numbers as strings or numbers
        Numbers must be whole and exactly representable; they are stored
        in their integer string form
        """
        if v is None:
            return None

        if isinstance(v, bool):
            raise ValueError('Phone number must be a string or number')

        if isinstance(v, float):
            if not math.isfinite(v) or not v.is_integer():
                raise ValueError('Phone number must be a whole number')
            if abs(v) > MAX_EXACT_FLOAT:
                raise ValueError('Phone number is too large to be sent as a number; send it as a string')
            v = int(v)

        if isinstance(v, int):
            v = str(v)

        if not isinstance(v, str):
            raise ValueError('Phone number must be a string or number')

        v = v.strip()
        if len(v) > PHONE_MAX_LENGTH:
            raise ValueError(f'Phone number must be at most {PHONE_MAX_LENGTH} characters')
        return v or None


class ContactResponse(BaseModel):
    """
    Consolidated contact information for one identity
    """
    primaryContactId: int = Field(
        description="ID of the primary contact"
    )
    emails: List[str] = Field(
        description="All emails of the identity, the primary's own first",
        examples=[["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"]]
    )
    phoneNumbers: List[str] = Field(
        description="All phone numbers of the identity, the primary's own first",
        examples=[["123456"]]
    )
    secondaryContactIds: List[int] = Field(
        description="IDs of all secondary contacts linked to the primary",
        examples=[[23]]
    )


class IdentifyResponse(BaseModel):
    """
    Response schema for the /identify endpoint
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "contact": {
                    "primaryContactId": 1,
                    "emails": ["lorraine@hillvalley.edu", "mcfly@hillvalley.edu"],
                    "phoneNumbers": ["123456"],
                    "secondaryContactIds": [23]
                }
            }
        }
    )

    contact: ContactResponse = Field(
        description="Consolidated contact information"
    )


class ErrorResponse(BaseModel):
    """
    Error response schema for API errors
    """
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "InvalidRequest",
                    "message": "Either email or phoneNumber must be provided"
                },
                {
                    "error": "StorageFailure",
                    "message": "Unable to process identity reconciliation request"
                }
            ]
        }
    )

    error: str = Field(
        description="Error type or category"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error details"
    )
