"""
Exceptions raised by the contact service and the record store.
"""


class ContactError(Exception):
    """Base class for address book failures reported to callers"""

    pass


class ContactNotFoundError(ContactError):
    """No contact is stored under the requested id"""

    def __init__(self, contact_id):
        super().__init__(f"Contact not found with id: {contact_id}")
        self.contact_id = contact_id


class DuplicateContactError(ContactError):
    """Another contact already uses the same email"""

    @classmethod
    def for_email(cls, email: str) -> "DuplicateContactError":
        return cls(f"A contact with email '{email}' already exists")


class InvalidContactError(ContactError):
    """Contact data failed validation"""

    pass
