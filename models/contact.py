"""
Contact model for the Contact Identity Resolver
This module defines the Contact database model for storing observed
(email, phone) facts and the primary/secondary links that group them
into one identity per person. Contacts are never deleted.
"""

import enum

from sqlalchemy import Column, String, Integer, ForeignKey, Index, CheckConstraint

from .base import BaseModel


EMAIL_MAX_LENGTH = 255
PHONE_MAX_LENGTH = 20


class LinkPrecedence(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Contact(BaseModel):
    """
    Contact model representing one observed contact fact

    Each contact is either 'primary' (the canonical, oldest record of its
    component) or 'secondary' (linked directly to that primary; chains are
    never more than one hop deep).

    Database Table: contacts
    """
    __tablename__ = "contacts"

    phone_number = Column(
        String(PHONE_MAX_LENGTH),
        nullable=True,
        index=True,
        comment="Customer phone number as supplied"
    )

    email = Column(
        String(EMAIL_MAX_LENGTH),
        nullable=True,
        index=True,
        comment="Customer email address"
    )

    linked_id = Column(
        Integer,
        ForeignKey("contacts.id"),
        nullable=True,
        index=True,
        comment="ID of the primary contact this secondary contact links to"
    )

    link_precedence = Column(
        String(10),
        nullable=False,
        default=LinkPrecedence.PRIMARY.value,
        comment="Either 'primary' (canonical contact) or 'secondary' (linked contact)"
    )

    __table_args__ = (
        CheckConstraint(
            "link_precedence IN ('primary', 'secondary')",
            name="valid_link_precedence"
        ),
        CheckConstraint(
            "(phone_number IS NOT NULL) OR (email IS NOT NULL)",
            name="contact_info_required"
        ),
        CheckConstraint(
            "(link_precedence = 'primary' AND linked_id IS NULL) OR "
            "(link_precedence = 'secondary' AND linked_id IS NOT NULL)",
            name="secondary_must_have_linked_id"
        ),
        Index("ix_contact_email_phone", "email", "phone_number"),
        Index("ix_contact_precedence_linked", "link_precedence", "linked_id"),
    )

    def __repr__(self):
        contact_info = []
        if self.email:
            contact_info.append(f"email={self.email}")
        if self.phone_number:
            contact_info.append(f"phone={self.phone_number}")

        return (
            f"<Contact(id={self.id}, "
            f"{', '.join(contact_info)}, "
            f"precedence={self.link_precedence})>"
        )

    def is_primary(self):
        return self.link_precedence == LinkPrecedence.PRIMARY.value

    def is_secondary(self):
        return self.link_precedence == LinkPrecedence.SECONDARY.value

    def is_linked_to(self, primary_id: int) -> bool:
        """True if this contact is already a secondary of the given primary"""
        return self.is_secondary() and self.linked_id == primary_id
