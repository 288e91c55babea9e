"""
Identity Resolver - core business logic for identity reconciliation
Merges an incoming (email, phone) fact into the component of contacts it
belongs to and returns the consolidated view of that identity
"""

import asyncio
import logging
from contextlib import nullcontext
from typing import List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from database import DatabaseManager
from models.contact import Contact, LinkPrecedence, EMAIL_MAX_LENGTH, PHONE_MAX_LENGTH
from schemas.identify import ContactResponse, IdentifyResponse
from services.component import (
    collect_identifiers,
    collect_link_ids,
    consolidate,
    introduces_new_information,
    lock_keys,
    plan_relinks,
    select_primary,
)
from services.contact_repository import ContactRepository
from services.errors import InvalidRequest, InvariantViolation, StorageFailure

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class IdentityResolver:
    """
    Resolves contact facts against the contact store

    Each call runs in a single transaction. On PostgreSQL the transaction
    holds advisory locks on every email and phone of the component it
    touches; other engines fall back to one process-wide lock.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self._local_lock = asyncio.Lock()

    def _serialize(self):
        if self.db_manager.supports_advisory_locks:
            return nullcontext()
        return self._local_lock

    async def resolve(self, email: Optional[str] = None, phone: Optional[str] = None) -> IdentifyResponse:
        """
        Main orchestration method for identity reconciliation

        Algorithm:
        1. Find contacts matching the email or the phone
        2. If none -> create a new primary contact
        3. Expand to the whole component and pick its oldest contact as primary
        4. Relink every other contact of the component to that primary
        5. Add a secondary if the fact carries a new email or phone
        6. Return the consolidated view of the primary and its secondaries
        """
        email = _clean(email)
        phone = _clean(phone)
        if not email and not phone:
            raise InvalidRequest("Either email or phoneNumber must be provided")
        if email and len(email) > EMAIL_MAX_LENGTH:
            raise InvalidRequest(f"email must be at most {EMAIL_MAX_LENGTH} characters")
        if phone and len(phone) > PHONE_MAX_LENGTH:
            raise InvalidRequest(f"phoneNumber must be at most {PHONE_MAX_LENGTH} characters")

        try:
            async with self._serialize():
                async with self.db_manager.transaction() as session:
                    contact = await self._resolve(ContactRepository(session), email, phone)
        except (SQLAlchemyError, OSError) as e:
            logger.exception(f"Storage failure resolving email={email}, phone={phone}: {e}")
            raise StorageFailure("Unable to process identity reconciliation request") from e

        return IdentifyResponse(contact=contact)

    async def _resolve(
        self,
        repo: ContactRepository,
        email: Optional[str],
        phone: Optional[str]
    ) -> ContactResponse:
        locked = set(lock_keys([email], [phone]))
        await repo.lock(locked)

        seeds = await repo.find_matching(
            [email] if email else [],
            [phone] if phone else []
        )
        if not seeds:
            return await self._create_primary(repo, email, phone)

        try:
            component = await self._expand_component(repo, seeds, locked)
        except InvariantViolation as e:
            logger.warning(f"Contact store anomaly: {e}; creating a new primary contact")
            return await self._create_primary(repo, email, phone)

        primary = select_primary(component)
        if not primary.is_primary():
            logger.warning(f"Oldest contact {primary.id} of its component was not primary; promoting it")
            await repo.promote(primary)

        await repo.relink(plan_relinks(component, primary), primary)

        if introduces_new_information(component, email, phone):
            secondary = await repo.create(email, phone, LinkPrecedence.SECONDARY, linked_id=primary.id)
            logger.info(f"Created secondary contact {secondary.id} for primary {primary.id}")

        contacts = await repo.find_by_primary(primary.id)
        return consolidate(primary, contacts)

    async def _create_primary(
        self,
        repo: ContactRepository,
        email: Optional[str],
        phone: Optional[str]
    ) -> ContactResponse:
        primary = await repo.create(email, phone, LinkPrecedence.PRIMARY)
        logger.info(f"Created primary contact {primary.id}")
        return consolidate(primary, [primary])

    async def _expand_component(
        self,
        repo: ContactRepository,
        seeds: List[Contact],
        locked: Set[str]
    ) -> List[Contact]:
        """
        Grow the seed contacts into their full component

        Re-queries by every email, phone and link seen so far until a pass
        adds nothing. Identifiers discovered along the way are locked before
        the final pass, so the returned component was read under lock.
        """
        emails, phones = collect_identifiers(seeds)
        ids = collect_link_ids(seeds)

        while True:
            component = await repo.find_matching(emails, phones, ids)
            if not component:
                raise InvariantViolation(
                    f"expansion of seed contacts {sorted(c.id for c in seeds)} returned nothing"
                )

            next_emails, next_phones = collect_identifiers(component)
            next_ids = collect_link_ids(component)

            unlocked = set(lock_keys(next_emails, next_phones)) - locked
            if unlocked:
                await repo.lock(unlocked)
                locked.update(unlocked)
            elif (next_emails, next_phones, next_ids) == (emails, phones, ids):
                return component

            emails, phones, ids = next_emails, next_phones, next_ids
