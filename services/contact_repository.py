"""
Storage access for contacts
Every method runs inside the caller's session and transaction; nothing
here commits.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, or_, text
from sqlalchemy.ext.asyncio import AsyncSession

from models.base import utcnow
from models.contact import Contact, LinkPrecedence

logger = logging.getLogger(__name__)


class ContactRepository:
    """Find, insert and relink contacts through one AsyncSession"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock(self, keys: Iterable[str]):
        """
        Take transaction-scoped advisory locks on the given keys

        Keys are locked in sorted order and released when the transaction
        ends. Only PostgreSQL has advisory locks; elsewhere this is a no-op
        and callers must serialize some other way.
        """
        if self.session.bind.dialect.name != "postgresql":
            return

        for key in sorted(keys):
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(hashtextextended(:key, 0))"),
                {"key": key}
            )

    async def find_matching(
        self,
        emails: Iterable[str],
        phones: Iterable[str],
        ids: Iterable[int] = ()
    ) -> List[Contact]:
        """
        Contacts whose email is any of `emails` OR whose phone is any of `phones`
        An empty side is left out of the predicate, never matched against NULL.

        With `ids`, contacts having one of those ids or linked to one of them
        match as well.
        """
        emails = sorted({e for e in emails if e})
        phones = sorted({p for p in phones if p})
        ids = sorted(set(ids))

        conditions = []
        if emails:
            conditions.append(Contact.email.in_(emails))
        if phones:
            conditions.append(Contact.phone_number.in_(phones))
        if ids:
            conditions.append(Contact.id.in_(ids))
            conditions.append(Contact.linked_id.in_(ids))

        if not conditions:
            return []

        query = select(Contact).where(or_(*conditions)).order_by(Contact.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_by_primary(self, primary_id: int) -> List[Contact]:
        """The primary and every contact linked to it, in id order"""
        query = select(Contact).where(
            or_(Contact.id == primary_id, Contact.linked_id == primary_id)
        ).order_by(Contact.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create(
        self,
        email: Optional[str],
        phone: Optional[str],
        precedence: LinkPrecedence,
        linked_id: Optional[int] = None
    ) -> Contact:
        now = utcnow()
        contact = Contact(
            email=email,
            phone_number=phone,
            linked_id=linked_id,
            link_precedence=precedence.value,
            created_at=now,
            updated_at=now
        )

        self.session.add(contact)
        await self.session.flush()  # Get the ID
        logger.debug(f"Created {precedence.value} contact {contact.id}")
        return contact

    async def relink(self, contacts: Iterable[Contact], primary: Contact):
        """Make every given contact a secondary of `primary`"""
        now = utcnow()
        relinked = []
        for contact in contacts:
            contact.link_precedence = LinkPrecedence.SECONDARY.value
            contact.linked_id = primary.id
            contact.updated_at = now
            relinked.append(contact.id)

        if relinked:
            await self.session.flush()
            logger.info(f"Relinked contacts {relinked} to primary {primary.id}")

    async def promote(self, contact: Contact):
        """Make `contact` a primary again"""
        contact.link_precedence = LinkPrecedence.PRIMARY.value
        contact.linked_id = None
        contact.updated_at = utcnow()
        await self.session.flush()
