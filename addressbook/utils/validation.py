from typing import List, Optional
import re
import logging

from ..core.contact import Contact
from ..core.types import ValidationLevel, ValidationResults
from ..processors.address import AddressProcessor
from ..processors.phone import PhoneProcessor
from .string import is_blank


REQUIRED_FIELDS = ("last_name", "first_name", "email")


def validate_email(email: str) -> bool:
    """Validate email format"""
    if not email:
        return False

    # Basic email regex pattern
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email.strip()))


def validate_required_fields(contact: Contact, required_fields=REQUIRED_FIELDS) -> List[str]:
    errors = []
    for field in required_fields:
        if is_blank(getattr(contact, field)):
            errors.append(f"Missing required field: {field}")
    return errors


def validate_contact(
    contact: Contact,
    level: ValidationLevel = ValidationLevel.BASIC,
    phone_processor: Optional[PhoneProcessor] = None,
    address_processor: Optional[AddressProcessor] = None,
) -> ValidationResults:
    """Validate contact fields for the given level"""
    validation_results = {"errors": [], "warnings": []}

    if level == ValidationLevel.NONE:
        return validation_results

    validation_results["errors"].extend(validate_required_fields(contact))

    # Only check formats once the required fields are present
    if validation_results["errors"]:
        return validation_results

    if not validate_email(contact.email):
        validation_results["errors"].append(f"Invalid email format: {contact.email}")

    if level == ValidationLevel.STRICT:
        phone_processor = phone_processor or PhoneProcessor()
        address_processor = address_processor or AddressProcessor()

        if not is_blank(contact.phone) and not phone_processor.is_valid_phone(contact.phone):
            validation_results["warnings"].append(f"Suspicious phone format: {contact.phone}")
        if not is_blank(contact.country) and not address_processor.is_known_country(contact.country):
            validation_results["warnings"].append(f"Unknown country: {contact.country}")

    return validation_results


def log_validation_results(
    results: ValidationResults, logger: Optional[logging.Logger] = None
) -> None:
    """Log validation results with appropriate severity"""
    if logger is None:
        logger = logging.getLogger(__name__)

    for error in results["errors"]:
        logger.error(f"Validation error: {error}")

    for warning in results["warnings"]:
        logger.warning(f"Validation warning: {warning}")
