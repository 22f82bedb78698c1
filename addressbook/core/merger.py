import logging
from dataclasses import dataclass
from typing import Union

from .contact import Contact, OPTIONAL_FIELDS
from .errors import InvalidContactError
from ..io.store import ContactStore
from ..utils.string import is_blank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeOutcome:
    """The saved target contact and the id of the deleted source."""

    merged_contact: Contact
    deleted_id: int

    def to_dict(self) -> dict:
        return {
            "mergedContact": self.merged_contact.to_dict(),
            "deletedId": self.deleted_id,
        }


@dataclass(frozen=True)
class NotFound:
    """A merge referenced an id the store does not know."""

    contact_id: int


MergeResult = Union[MergeOutcome, NotFound]


class ContactMerger:
    """Field-completion merge of a source contact into a target contact.

    Only the optional fields of the target are filled, and only where the
    target is blank and the source is not. Names and email of the target are
    never changed. The caller is expected to run ``merge`` inside
    ``store.transaction()``.
    """

    def __init__(self, store: ContactStore):
        self.store = store

    def merge(self, target_id: int, source_id: int) -> MergeResult:
        if target_id == source_id:
            raise InvalidContactError(f"Cannot merge contact {target_id} into itself")

        target = self.store.get_by_id(target_id)
        if target is None:
            return NotFound(target_id)

        source = self.store.get_by_id(source_id)
        if source is None:
            return NotFound(source_id)

        completed = self.complete_fields(target, source)
        if completed:
            logger.debug(f"Completed {', '.join(completed)} on contact {target_id} from {source_id}")

        merged = self.store.save(target)
        self.store.delete_by_id(source_id)

        logger.info(
            f"Merged contacts: {source.last_name} {source.first_name} (id:{source_id}) into "
            f"{target.last_name} {target.first_name} (id:{target_id})"
        )
        return MergeOutcome(merged, source_id)

    @staticmethod
    def complete_fields(target: Contact, source: Contact) -> list:
        """Copy blank optional fields of target from source, returning the names of copied fields"""
        completed = []
        for field in OPTIONAL_FIELDS:
            if is_blank(getattr(target, field)) and not is_blank(getattr(source, field)):
                setattr(target, field, getattr(source, field))
                completed.append(field)
        return completed
