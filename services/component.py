"""
Pure functions over the state of one contact component

A component is the set of contacts transitively connected by a shared
email or phone number. Nothing in this module touches the database; the
resolver fetches contacts, asks these functions what to change, and
persists the answer.
"""

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from models.contact import Contact
from schemas.identify import ContactResponse


def collect_identifiers(contacts: Iterable[Contact]) -> Tuple[Set[str], Set[str]]:
    """Distinct non-null emails and phone numbers seen across the contacts"""
    emails = set()
    phones = set()
    for contact in contacts:
        if contact.email:
            emails.add(contact.email)
        if contact.phone_number:
            phones.add(contact.phone_number)
    return emails, phones


def collect_link_ids(contacts: Iterable[Contact]) -> Set[int]:
    """Ids of the contacts plus every id they link to"""
    ids = set()
    for contact in contacts:
        ids.add(contact.id)
        if contact.linked_id is not None:
            ids.add(contact.linked_id)
    return ids


def lock_keys(emails: Iterable[Optional[str]], phones: Iterable[Optional[str]]) -> List[str]:
    """
    Sorted advisory lock keys for a set of identifiers

    Emails are compared case-insensitively for locking only, so two requests
    differing just in email case still serialize against each other.
    """
    keys = {f"email:{email.strip().lower()}" for email in emails if email}
    keys.update(f"phone:{phone.strip()}" for phone in phones if phone)
    return sorted(keys)


def select_primary(contacts: Sequence[Contact]) -> Contact:
    """
    The oldest contact of the component, whatever its current precedence
    Ties on created_at go to the smaller id.
    """
    if not contacts:
        raise ValueError("Cannot select a primary from an empty component")
    return min(contacts, key=lambda c: (c.created_at, c.id))


def plan_relinks(contacts: Sequence[Contact], primary: Contact) -> List[Contact]:
    """
    Contacts whose link state must change to point at the primary

    Covers younger primaries being merged in and secondaries still linked
    to one of them. The primary itself is never included.
    """
    return [
        contact for contact in contacts
        if contact.id != primary.id and not contact.is_linked_to(primary.id)
    ]


def introduces_new_information(
    contacts: Sequence[Contact],
    email: Optional[str],
    phone: Optional[str]
) -> bool:
    """
    Whether the incoming fact deserves its own secondary row

    False when some row already holds exactly this (email, phone) pair, or
    when every supplied value is already known somewhere in the component,
    even if never paired together.
    """
    for contact in contacts:
        if contact.email == email and contact.phone_number == phone:
            return False

    known_emails, known_phones = collect_identifiers(contacts)
    has_new_email = bool(email) and email not in known_emails
    has_new_phone = bool(phone) and phone not in known_phones
    return has_new_email or has_new_phone


def _primary_first(values: Iterable[Optional[str]], primary_value: Optional[str]) -> List[str]:
    ordered = []
    if primary_value:
        ordered.append(primary_value)
    for value in values:
        if value and value not in ordered:
            ordered.append(value)
    return ordered


def consolidate(primary: Contact, contacts: Sequence[Contact]) -> ContactResponse:
    """
    Build the merged view of a component

    `contacts` is the primary plus its secondaries in storage order. Emails
    and phone numbers are deduplicated with the primary's own value first.
    """
    return ContactResponse(
        primaryContactId=primary.id,
        emails=_primary_first((c.email for c in contacts), primary.email),
        phoneNumbers=_primary_first((c.phone_number for c in contacts), primary.phone_number),
        secondaryContactIds=[c.id for c in contacts if c.is_secondary()],
    )
