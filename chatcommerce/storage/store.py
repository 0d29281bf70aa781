"""
Typed persistence operations for the decision pipeline.

CommerceStore maps pipeline entities onto keyed repositories:

    sessions        session id   -> OrderSession
    active_sessions customer id  -> {"session_id": ...}
    journeys        customer id  -> CustomerJourney
    contexts        customer id  -> ConversationContext
    orders          session id   -> Order
    tags            customer:category:tag -> TagRecord
    profiles        customer id  -> CustomerProfile

Orders are keyed by session so a retried confirmation overwrites the
same record instead of creating a second order.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from chatcommerce.errors import PersistenceError
from chatcommerce.schemas.customer_schema import (
    ConversationContext,
    CustomerProfile,
    CustomerTag,
    TagRecord,
)
from chatcommerce.schemas.journey_schema import CustomerJourney
from chatcommerce.schemas.order_schema import Order, OrderSession
from chatcommerce.storage.repository import InMemoryRepository, Repository
from chatcommerce.storage.sql_repository import SQLRecordStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

KINDS = ("sessions", "active_sessions", "journeys", "contexts", "orders", "tags", "profiles")


class CommerceStore:
    """Keyed-record CRUD for sessions, journeys, contexts, orders, tags and profiles."""

    def __init__(self, repository_factory: Callable[[str], Repository]) -> None:
        self._repos: dict[str, Repository] = {kind: repository_factory(kind) for kind in KINDS}

    @classmethod
    def in_memory(cls) -> "CommerceStore":
        return cls(lambda kind: InMemoryRepository())

    @classmethod
    def from_url(cls, database_url: str) -> "CommerceStore":
        records = SQLRecordStore(database_url)
        return cls(records.repository)

    def repository(self, kind: str) -> Repository:
        return self._repos[kind]

    def _load(self, kind: str, key: str, model: type[ModelT]) -> Optional[ModelT]:
        record = self._repos[kind].get(key)
        if record is None:
            return None
        try:
            return model.model_validate(record)
        except ValidationError as exc:
            raise PersistenceError(f"Corrupt {kind} record {key!r}: {exc}") from exc

    def _save(self, kind: str, key: str, item: BaseModel) -> None:
        self._repos[kind].put(key, item.model_dump(mode="json"))

    def _all(self, kind: str, model: type[ModelT]) -> list[ModelT]:
        try:
            return [model.model_validate(r) for r in self._repos[kind].values()]
        except ValidationError as exc:
            raise PersistenceError(f"Corrupt {kind} record: {exc}") from exc

    # --- Sessions ---

    def load_session(self, customer_id: str) -> Optional[OrderSession]:
        """The customer's active (non-terminal) session, if any."""
        pointer = self._repos["active_sessions"].get(customer_id)
        if pointer is None:
            return None
        session = self._load("sessions", pointer["session_id"], OrderSession)
        if session is None or not session.is_active():
            return None
        return session

    def get_session(self, session_id: str) -> Optional[OrderSession]:
        return self._load("sessions", session_id, OrderSession)

    def save_session(self, session: OrderSession) -> None:
        self._save("sessions", session.id, session)
        index = self._repos["active_sessions"]
        if session.is_active():
            index.put(session.customer_id, {"session_id": session.id})
        else:
            pointer = index.get(session.customer_id)
            if pointer is not None and pointer.get("session_id") == session.id:
                index.delete(session.customer_id)
        logger.debug("Session saved: %s (%s)", session.id, session.state.value)

    # --- Journeys and context ---

    def load_journey(self, customer_id: str) -> Optional[CustomerJourney]:
        return self._load("journeys", customer_id, CustomerJourney)

    def save_journey(self, journey: CustomerJourney) -> None:
        self._save("journeys", journey.customer_id, journey)

    def list_journeys(self) -> list[CustomerJourney]:
        return self._all("journeys", CustomerJourney)

    def load_context(self, customer_id: str) -> Optional[ConversationContext]:
        return self._load("contexts", customer_id, ConversationContext)

    def save_context(self, context: ConversationContext) -> None:
        self._save("contexts", context.customer_id, context)

    # --- Orders ---

    def save_order(self, order: Order) -> None:
        self._save("orders", order.session_id, order)
        logger.info("Order saved: %s", order.order_number)

    def get_order(self, session_id: str) -> Optional[Order]:
        return self._load("orders", session_id, Order)

    def list_orders(self) -> list[Order]:
        return self._all("orders", Order)

    # --- Tags and profiles ---

    def save_tag(self, customer_id: str, tag: CustomerTag, now: datetime) -> TagRecord:
        """Upsert on (customer_id, category, tag); keeps the first created_at."""
        key = f"{customer_id}:{tag.category.value}:{tag.tag}"
        existing = self._load("tags", key, TagRecord)
        record = TagRecord(
            customer_id=customer_id,
            category=tag.category,
            tag=tag.tag,
            priority=tag.priority,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._save("tags", key, record)
        return record

    def tags_for(self, customer_id: str) -> list[TagRecord]:
        return [t for t in self._all("tags", TagRecord) if t.customer_id == customer_id]

    def save_profile(self, profile: CustomerProfile) -> None:
        self._save("profiles", profile.customer_id, profile)

    def load_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        return self._load("profiles", customer_id, CustomerProfile)
