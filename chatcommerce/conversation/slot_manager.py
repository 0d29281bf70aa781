"""
Contact and delivery slot filling for order sessions.

New values from a message are validated and normalized before being
merged into the session. Invalid values are dropped and earlier good
values are kept, so a typo never erases a phone number already on file.

Usage:
    slots = OrderSlotManager()
    slots.merge_contact(session, analysis.contact_info)
    if not slots.missing_fields(session):
        ...  # ready for confirmation
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from chatcommerce.schemas.analysis_schema import ContactInfo, OrderDetails
from chatcommerce.schemas.order_schema import OrderSession
from chatcommerce.utils import normalize_phone

logger = logging.getLogger(__name__)

# Validation thresholds
MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15
MIN_ADDRESS_LENGTH = 5

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def _validate_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def _validate_phone(value: str) -> bool:
    digits = re.sub(r"[^\d]", "", value)
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def _validate_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value.strip()))


def _validate_address(value: str) -> bool:
    return len(value.strip()) >= MIN_ADDRESS_LENGTH


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single slot to collect."""

    name: str
    display_name: str
    validator: Optional[Callable[[str], bool]] = None
    normalizer: Optional[Callable[[str], str]] = None


CONTACT_SLOTS: list[SlotDefinition] = [
    SlotDefinition("name", "name", _validate_name, lambda v: v.strip().title()),
    SlotDefinition("phone", "phone number", _validate_phone, normalize_phone),
    SlotDefinition("email", "email", _validate_email, lambda v: v.strip().lower()),
]

DETAIL_SLOTS: list[SlotDefinition] = [
    SlotDefinition("variant", "variant", None, str.strip),
    SlotDefinition("address", "delivery address", _validate_address, str.strip),
]


def _accept(defn: SlotDefinition, raw: Optional[str]) -> Optional[str]:
    if raw is None or not str(raw).strip():
        return None
    raw = str(raw)
    if defn.validator and not defn.validator(raw):
        logger.debug("Slot '%s' validation failed: '%s'", defn.name, raw)
        return None
    return defn.normalizer(raw) if defn.normalizer else raw


class OrderSlotManager:
    """Validates and merges customer-provided fields into an order session."""

    def merge_contact(self, session: OrderSession, contact: ContactInfo) -> list[str]:
        """Merge valid contact values; returns the slot names that changed."""
        updated = []
        for defn in CONTACT_SLOTS:
            value = _accept(defn, getattr(contact, defn.name))
            if value is not None and value != getattr(session.customer_info, defn.name):
                setattr(session.customer_info, defn.name, value)
                updated.append(defn.name)
        if updated:
            logger.debug("Contact slots updated: %s", updated)
        return updated

    def merge_order_details(self, session: OrderSession, details: OrderDetails) -> list[str]:
        """Merge valid variant, address and quantity values."""
        updated = []
        for defn in DETAIL_SLOTS:
            value = _accept(defn, getattr(details, defn.name))
            if value is not None and value != getattr(session.order_details, defn.name):
                setattr(session.order_details, defn.name, value)
                updated.append(defn.name)
        if details.quantity is not None and details.quantity > 0:
            session.order_details.quantity = details.quantity
            updated.append("quantity")
        return updated

    def has_contact_for_confirmation(self, session: OrderSession) -> bool:
        """Shortcut from inquiry: a name or a phone is enough."""
        info = session.customer_info
        return bool(info.name or info.phone)

    def missing_fields(self, session: OrderSession) -> list[str]:
        """Display names of required contact fields not yet collected."""
        info = session.customer_info
        missing = []
        if not info.name:
            missing.append("your name")
        if not (info.phone or info.email):
            missing.append("phone number or email")
        return missing

    def is_complete(self, session: OrderSession) -> bool:
        return not self.missing_fields(session)
