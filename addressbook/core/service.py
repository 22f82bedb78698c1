"""
Caller-facing contact operations: CRUD, search, favorites, duplicate
detection and merge, import and statistics.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .contact import Contact, FIELD_NAMES
from .errors import ContactNotFoundError, DuplicateContactError, InvalidContactError
from .matcher import DuplicateDetector
from .merger import ContactMerger, NotFound
from .statistics import StatisticsResult, compute_statistics
from .types import ValidationLevel
from .. import settings
from ..io.store import ContactStore
from ..processors.address import AddressProcessor
from ..utils.string import contains_ignore_case, is_blank
from ..utils.validation import log_validation_results, validate_contact

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = tuple(name for name in FIELD_NAMES if name != "favorite")


@dataclass
class Page:
    items: List[Contact]
    page: int
    size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.size) if self.total_items else 0


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    messages: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.imported + self.skipped + self.errors

    def __str__(self) -> str:
        return (
            f"Import finished: {self.imported} imported, {self.skipped} skipped, "
            f"{self.errors} errors out of {self.total}"
        )


class ContactService:
    def __init__(
        self,
        store: ContactStore,
        detector: Optional[DuplicateDetector] = None,
        validation_level: ValidationLevel = settings.VALIDATION_LEVEL,
    ):
        self.store = store
        self.detector = detector or DuplicateDetector()
        self.merger = ContactMerger(store)
        self.validation_level = validation_level
        self.address_processor = AddressProcessor()

    # --- CRUD ---

    def create_contact(self, contact: Contact) -> Contact:
        """Validate and store a new contact, refusing an email already in use"""
        if contact is None:
            raise InvalidContactError("Contact must not be None")

        self._validate(contact)
        if self.store.exists_by_email(contact.email):
            raise DuplicateContactError.for_email(contact.email)

        created = self.store.save(contact)
        logger.info(f"Created contact {created.id}: {created.full_name}")
        return created

    def get_all_contacts(self) -> List[Contact]:
        return self.store.list_all()

    def get_contact(self, contact_id: int) -> Contact:
        if contact_id is None:
            raise ValueError("Contact id must not be None")

        contact = self.store.get_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)
        return contact

    def get_contact_by_email(self, email: str) -> Optional[Contact]:
        if is_blank(email):
            raise ValueError("Email must not be blank")
        return self.store.find_by_email(email)

    def search_by_last_name(self, text: str) -> List[Contact]:
        if is_blank(text):
            raise ValueError("Search text must not be blank")
        return [c for c in self.store.list_all() if contains_ignore_case(c.last_name, text)]

    def search_by_first_name(self, text: str) -> List[Contact]:
        if is_blank(text):
            raise ValueError("Search text must not be blank")
        return [c for c in self.store.list_all() if contains_ignore_case(c.first_name, text)]

    def update_contact(self, contact_id: int, details: Contact) -> Contact:
        """Apply non-blank identity fields and any non-None phone/address from details"""
        if details is None:
            raise InvalidContactError("Contact details must not be None")

        with self.store.transaction():
            existing = self.get_contact(contact_id)

            if not is_blank(details.email) and details.email != existing.email:
                owner = self.store.find_by_email(details.email)
                if owner is not None and owner.id != contact_id:
                    raise DuplicateContactError.for_email(details.email)

            for name in ("last_name", "first_name", "email"):
                value = getattr(details, name)
                if not is_blank(value):
                    setattr(existing, name, value)

            # None leaves the value alone, an empty string clears it
            for name in ("phone", "address"):
                value = getattr(details, name)
                if value is not None:
                    setattr(existing, name, value)

            updated = self.store.save(existing)

        logger.info(f"Updated contact {contact_id}")
        return updated

    def delete_contact(self, contact_id: int) -> None:
        if contact_id is None:
            raise ValueError("Contact id must not be None")
        if not self.store.delete_by_id(contact_id):
            raise ContactNotFoundError(contact_id)
        logger.info(f"Deleted contact {contact_id}")

    def email_exists(self, email: str) -> bool:
        if is_blank(email):
            return False
        return self.store.exists_by_email(email)

    def count_contacts(self) -> int:
        return self.store.count()

    def delete_all_contacts(self) -> None:
        logger.warning("Deleting all contacts")
        self.store.delete_all()

    # --- Filtering and pagination ---

    def filter_contacts(
        self,
        last_name: Optional[str] = None,
        first_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
    ) -> List[Contact]:
        """Contacts matching every non-blank filter (substring, case-insensitive except phone)"""
        text_filters = {
            "last_name": last_name,
            "first_name": first_name,
            "email": email,
            "city": city,
            "country": country,
        }
        text_filters = {name: value for name, value in text_filters.items() if not is_blank(value)}

        results = []
        for contact in self.store.list_all():
            if not all(contains_ignore_case(getattr(contact, name), value) for name, value in text_filters.items()):
                continue
            if not is_blank(phone) and (contact.phone is None or phone not in contact.phone):
                continue
            results.append(contact)
        return results

    def page(
        self,
        page: int = 0,
        size: int = settings.DEFAULT_PAGE_SIZE,
        sort: str = "last_name",
        direction: str = "asc",
        **filters,
    ) -> Page:
        if size <= 0:
            raise ValueError(f"Page size must be positive, got {size}")
        if page < 0:
            raise ValueError(f"Page index must not be negative, got {page}")
        if sort not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by '{sort}', expected one of {', '.join(SORTABLE_FIELDS)}")

        logger.debug(f"Pagination: page={page}, size={size}, sort={sort}, direction={direction}")
        contacts = self.filter_contacts(**filters)

        # Blank values always sort after present ones, whatever the direction
        present = [c for c in contacts if getattr(c, sort) not in (None, "")]
        missing = [c for c in contacts if getattr(c, sort) in (None, "")]
        present.sort(
            key=lambda c: _sort_key(getattr(c, sort)),
            reverse=direction.lower() == "desc",
        )
        ordered = present + missing

        start = page * size
        return Page(items=ordered[start:start + size], page=page, size=size, total_items=len(ordered))

    # --- Favorites ---

    def favorites(self) -> List[Contact]:
        return [c for c in self.store.list_all() if c.favorite]

    def toggle_favorite(self, contact_id: int) -> Contact:
        with self.store.transaction():
            contact = self.get_contact(contact_id)
            contact.favorite = not contact.favorite
            updated = self.store.save(contact)
        logger.info(f"Contact {updated.full_name}: favorite = {updated.favorite}")
        return updated

    def is_favorite(self, contact_id: int) -> bool:
        contact = self.store.get_by_id(contact_id)
        return bool(contact and contact.favorite)

    # --- Duplicates ---

    def detect_duplicates(self) -> List[dict]:
        logger.info("Duplicate detection requested")
        pairs = self.detector.detect(self.store.list_all())
        return [pair.to_dict() for pair in pairs]

    def merge_contacts(self, target_id: int, source_id: int) -> dict:
        """Merge source into target atomically and delete source"""
        logger.info(f"Merging contacts id={target_id} and id={source_id}")
        with self.store.transaction():
            result = self.merger.merge(target_id, source_id)

        if isinstance(result, NotFound):
            raise ContactNotFoundError(result.contact_id)
        return result.to_dict()

    # --- Import and statistics ---

    def import_contacts(self, contacts: Iterable[Contact]) -> ImportResult:
        """Store new contacts, skipping emails already present"""
        result = ImportResult()
        for contact in contacts:
            contact = contact.copy()
            contact.id = None
            if not is_blank(contact.address):
                contact.address = self.address_processor.clean_address(contact.address)

            if not is_blank(contact.email) and self.store.exists_by_email(contact.email):
                result.skipped += 1
                result.messages.append(f"Contact skipped (email already exists): {contact.email}")
                continue

            try:
                self.create_contact(contact)
            except (InvalidContactError, DuplicateContactError) as e:
                result.errors += 1
                result.messages.append(f"Error for {contact.email or contact.full_name}: {e}")
                logger.error(f"Error importing contact: {e}")
                continue
            result.imported += 1

        logger.info(str(result))
        return result

    def statistics(self, canonical_countries: bool = False) -> StatisticsResult:
        return compute_statistics(self.store.list_all(), canonical_countries=canonical_countries)

    def _validate(self, contact: Contact) -> None:
        results = validate_contact(contact, self.validation_level, address_processor=self.address_processor)
        log_validation_results(results, logger)
        if results["errors"]:
            raise InvalidContactError("; ".join(results["errors"]))


def _sort_key(value):
    if isinstance(value, str):
        return value.lower()
    return value
