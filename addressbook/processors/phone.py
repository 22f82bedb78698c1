import re
from phonenumbers import parse, NumberParseException
import phonenumbers

from .. import settings


class PhoneProcessor:
    """Handles phone number validation.

    Duplicate detection compares raw phone strings, so nothing here is
    applied to stored values.
    """

    def __init__(self, default_region: str = settings.DEFAULT_PHONE_REGION):
        self.default_region = default_region
        self._number_cache = {}

    def _parse(self, phone: str):
        cache_key = (phone, self.default_region)
        if cache_key not in self._number_cache:
            cleaned = re.sub(r"[^\d+]", "", str(phone))
            try:
                self._number_cache[cache_key] = parse(cleaned, self.default_region)
            except NumberParseException:
                self._number_cache[cache_key] = None
        return self._number_cache[cache_key]

    def is_valid_phone(self, phone: str) -> bool:
        """Check if a phone number is valid for its region"""
        if not phone:
            return False
        number = self._parse(phone)
        return number is not None and phonenumbers.is_valid_number(number)

