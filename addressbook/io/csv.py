import csv
import logging
from typing import List, Dict, Optional
from ..core.contact import Contact, FIELD_NAMES
from .. import settings

logger = logging.getLogger(__name__)


class CSVHandler:
    """Handles reading and writing contacts in CSV format"""

    # Header variations accepted for each standardized field
    DEFAULT_FIELD_MAP = {
        "id": ["id", "ID", "Id"],
        "last_name": ["last_name", "Last Name", "LastName", "Family Name", "nom"],
        "first_name": ["first_name", "First Name", "FirstName", "Given Name", "prenom", "prénom"],
        "email": ["email", "Email", "E-mail", "E-mail Address"],
        "phone": ["phone", "Phone", "Telephone", "Mobile", "telephone", "téléphone"],
        "address": ["address", "Address", "Street", "adresse"],
        "city": ["city", "City", "Locality", "ville"],
        "country": ["country", "Country", "pays"],
        "favorite": ["favorite", "Favorite", "favori"],
    }

    def __init__(self, field_map: Optional[Dict] = None, encoding: str = settings.DEFAULT_ENCODING):
        self.field_map = field_map or self.DEFAULT_FIELD_MAP
        self.encoding = encoding

    def read_csv(self, filepath: str) -> List[Contact]:
        """Read contacts from CSV file"""
        contacts = []
        with open(filepath, "r", encoding=self.encoding, newline="") as csvfile:
            reader = csv.DictReader(csvfile)
            headers = self._normalize_headers(reader.fieldnames or [])

            for line_number, row in enumerate(reader, start=2):
                normalized_row = self._normalize_row(row, headers)
                if not normalized_row:
                    continue
                try:
                    contacts.append(Contact.from_dict(normalized_row))
                except ValueError as e:
                    logger.warning(f"Skipping line {line_number} of {filepath}: {e}")

        logger.debug(f"Read {len(contacts)} contacts from {filepath}")
        return contacts

    def write_csv(self, contacts: List[Contact], filepath: str) -> None:
        """Write contacts to CSV file, one standardized column per field"""
        fieldnames = list(FIELD_NAMES)

        with open(filepath, "w", encoding=self.encoding, newline="") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for contact in contacts:
                row = {k: ("" if v is None else v) for k, v in contact.to_dict().items()}
                row["favorite"] = "true" if contact.favorite else "false"
                writer.writerow(row)

        logger.debug(f"Wrote {len(contacts)} contacts to {filepath}")

    def _normalize_headers(self, headers: List[str]) -> Dict[str, str]:
        """Map CSV headers to standardized field names"""
        header_map = {}
        for header in headers:
            normalized = None
            for std_field, variations in self.field_map.items():
                if header.strip() in variations:
                    normalized = std_field
                    break
            header_map[header] = normalized or header
        return header_map

    def _normalize_row(self, row: Dict, header_map: Dict) -> Dict:
        """Convert CSV row to standardized format"""
        normalized = {}
        for original_header, value in row.items():
            if original_header is None:
                # Extra cells beyond the header row
                continue
            if value and value.strip():  # Only include non-empty values
                normalized[header_map[original_header]] = value.strip()
        return normalized
