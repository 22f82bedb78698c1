from typing import List, Dict, Optional
import vobject
from ..core.contact import Contact
from .. import settings


class VCardHandler:
    """Handles reading and writing contacts in vCard format"""

    def __init__(self, encoding: str = settings.DEFAULT_ENCODING):
        self.encoding = encoding

    def read_vcard(self, filepath: str) -> List[Contact]:
        """Read contacts from vCard file"""
        contacts = []
        with open(filepath, "r", encoding=self.encoding) as f:
            for vcard in vobject.readComponents(f.read()):
                contacts.append(Contact.from_dict(self._parse_vcard(vcard)))
        return contacts

    def write_vcard(self, contacts: List[Contact], filepath: str) -> None:
        """Write contacts to vCard file"""
        with open(filepath, "w", encoding=self.encoding) as f:
            for contact in contacts:
                f.write(self._create_vcard(contact).serialize())

    def _parse_vcard(self, vcard) -> Dict:
        """Convert vCard to contact dictionary"""
        data = {
            "email": self._get_vcard_value(vcard, "email"),
            "phone": self._get_vcard_value(vcard, "tel"),
        }

        # Structured name first, formatted name as a fallback
        if hasattr(vcard, "n") and vcard.n.value:
            data["last_name"] = self._join_component(vcard.n.value.family)
            data["first_name"] = self._join_component(vcard.n.value.given)
        elif fn := self._get_vcard_value(vcard, "fn"):
            parts = fn.split()
            data["first_name"] = " ".join(parts[:-1]) or None
            data["last_name"] = parts[-1] if parts else None

        if hasattr(vcard, "adr") and vcard.adr.value:
            data["address"] = self._join_component(vcard.adr.value.street)
            data["city"] = self._join_component(vcard.adr.value.city)
            data["country"] = self._join_component(vcard.adr.value.country)

        return data

    def _create_vcard(self, contact: Contact):
        """Convert contact to vCard object"""
        vcard = vobject.vCard()

        self._add_vcard_field(vcard, "fn", contact.full_name or contact.email or "Unknown Contact")
        vcard.add("n")
        vcard.n.value = vobject.vcard.Name(
            family=contact.last_name or "", given=contact.first_name or ""
        )

        self._add_vcard_field(vcard, "email", contact.email)
        self._add_vcard_field(vcard, "tel", contact.phone)

        if contact.address or contact.city or contact.country:
            vcard.add("adr")
            vcard.adr.value = vobject.vcard.Address(
                street=contact.address or "",
                city=contact.city or "",
                country=contact.country or "",
            )

        return vcard

    @staticmethod
    def _get_vcard_value(vcard, field: str):
        """Safely get single value from vCard field"""
        if hasattr(vcard, field):
            return getattr(vcard, field).value or None
        return None

    @staticmethod
    def _join_component(value) -> Optional[str]:
        """Flatten a structured N/ADR component; vobject yields a list for comma-separated values"""
        if isinstance(value, (list, tuple)):
            value = " ".join(str(part).strip() for part in value if part and str(part).strip())
        return value or None

    @staticmethod
    def _add_vcard_field(vcard, field: str, value: str) -> None:
        """Add field to vCard"""
        if value:
            vcard.add(field)
            getattr(vcard, field).value = value
