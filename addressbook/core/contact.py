from typing import Dict, Optional
from .types import ContactDict


# Fields the merge policy may fill in on a target contact
OPTIONAL_FIELDS = ("phone", "address", "city", "country")

# Fields a merge never touches on the target contact
IDENTITY_FIELDS = ("last_name", "first_name", "email")

FIELD_NAMES = ("id",) + IDENTITY_FIELDS + OPTIONAL_FIELDS + ("favorite",)


class Contact:
    def __init__(self, last_name=None, first_name=None, email=None, phone=None, address=None, city=None, country=None, favorite=False, id=None):
        self.id: Optional[int] = id
        self.last_name = last_name
        self.first_name = first_name
        self.email = email
        self.phone = phone
        self.address = address
        self.city = city
        self.country = country
        self.favorite = bool(favorite)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Contact':
        """Create a Contact instance from a dictionary"""
        contact_id = data.get("id")
        if contact_id in ("", None):
            contact_id = None
        else:
            contact_id = int(contact_id)

        favorite = data.get("favorite", False)
        if isinstance(favorite, str):
            favorite = favorite.strip().lower() in ("true", "1", "yes", "y")

        return cls(
            last_name=data.get("last_name"),
            first_name=data.get("first_name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            city=data.get("city"),
            country=data.get("country"),
            favorite=favorite,
            id=contact_id,
        )

    def to_dict(self) -> ContactDict:
        """Convert contact to dictionary with standardized field names"""
        return {name: getattr(self, name) for name in FIELD_NAMES}

    def copy(self) -> 'Contact':
        return Contact(**self.to_dict())

    @property
    def full_name(self) -> str:
        return " ".join(filter(None, [self.first_name, self.last_name]))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Contact):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Contact(id={self.id!r}, name={self.full_name!r}, email={self.email!r})"
