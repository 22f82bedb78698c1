"""Record store for contacts: the protocol the core depends on and an in-memory implementation."""

import logging
import threading
from contextlib import contextmanager
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional, Protocol

from ..core.contact import Contact
from ..core.errors import DuplicateContactError

logger = logging.getLogger(__name__)


class ContactStore(Protocol):
    """Owns contact lifetime. Returned contacts are detached copies."""

    def list_all(self) -> List[Contact]:
        ...

    def get_by_id(self, contact_id: int) -> Optional[Contact]:
        """Return the contact with the given id, or None."""
        ...

    def save(self, contact: Contact) -> Contact:
        """Insert when the contact has no id, update otherwise."""
        ...

    def delete_by_id(self, contact_id: int) -> bool:
        """Return False when nothing was stored under the id."""
        ...

    def find_by_email(self, email: str) -> Optional[Contact]:
        ...

    def exists_by_email(self, email: str) -> bool:
        ...

    def count(self) -> int:
        ...

    def delete_all(self) -> None:
        ...

    def transaction(self) -> ContextManager[None]:
        """Make the enclosed block atomic with respect to the store."""
        ...


class InMemoryContactStore:
    """Dict-backed store with integer ids, email uniqueness and snapshot transactions"""

    def __init__(self, contacts: Optional[Iterable[Contact]] = None):
        self._lock = threading.RLock()
        self._contacts: Dict[int, Contact] = {}
        self._next_id = 1
        if contacts:
            self.load(contacts)

    def load(self, contacts: Iterable[Contact]) -> None:
        """Add contacts, keeping ids they already carry"""
        with self._lock:
            for contact in contacts:
                self.save(contact)

    def list_all(self) -> List[Contact]:
        with self._lock:
            return [contact.copy() for contact in self._contacts.values()]

    def get_by_id(self, contact_id: int) -> Optional[Contact]:
        with self._lock:
            contact = self._contacts.get(contact_id)
            return contact.copy() if contact else None

    def save(self, contact: Contact) -> Contact:
        with self._lock:
            if contact.email:
                owner = self._find_by_email(contact.email)
                if owner is not None and owner.id != contact.id:
                    raise DuplicateContactError.for_email(contact.email)

            stored = contact.copy()
            if stored.id is None:
                stored.id = self._next_id
                logger.debug(f"Inserting contact {stored.id}")
            else:
                logger.debug(f"Updating contact {stored.id}")
            self._next_id = max(self._next_id, stored.id + 1)

            self._contacts[stored.id] = stored
            return stored.copy()

    def delete_by_id(self, contact_id: int) -> bool:
        with self._lock:
            if contact_id not in self._contacts:
                return False
            del self._contacts[contact_id]
            logger.debug(f"Deleted contact {contact_id}")
            return True

    def find_by_email(self, email: str) -> Optional[Contact]:
        with self._lock:
            contact = self._find_by_email(email)
            return contact.copy() if contact else None

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._contacts)

    def delete_all(self) -> None:
        with self._lock:
            self._contacts.clear()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the store lock for the block and restore the snapshot if it raises"""
        with self._lock:
            snapshot = {contact_id: contact.copy() for contact_id, contact in self._contacts.items()}
            next_id = self._next_id
            try:
                yield
            except Exception:
                logger.warning("Rolling back contact store transaction")
                self._contacts = snapshot
                self._next_id = next_id
                raise

    def _find_by_email(self, email: str) -> Optional[Contact]:
        for contact in self._contacts.values():
            if contact.email == email:
                return contact
        return None
