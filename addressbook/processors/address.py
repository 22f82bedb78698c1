from typing import Optional
import logging
import pycountry

from ..utils.string import clean_string, normalize_whitespace

logger = logging.getLogger(__name__)


class AddressProcessor:
    """Cleans postal address parts and resolves country names"""

    def __init__(self):
        self._country_cache = {}

    def clean_address(self, address: Optional[str]) -> str:
        """Collapse whitespace and drop stray punctuation, keeping separators used in addresses"""
        if not address:
            return ""
        return normalize_whitespace(clean_string(address, keep_chars=",.'/#-"))

    def lookup_country(self, country: Optional[str]):
        """Resolve a country name or code with pycountry, or None"""
        if not country or not country.strip():
            return None

        key = country.strip().lower()
        if key not in self._country_cache:
            try:
                self._country_cache[key] = pycountry.countries.lookup(country.strip())
            except LookupError:
                logger.debug(f"Unknown country: {country}")
                self._country_cache[key] = None
        return self._country_cache[key]

    def is_known_country(self, country: Optional[str]) -> bool:
        return self.lookup_country(country) is not None

    def canonical_country(self, country: Optional[str]) -> Optional[str]:
        """Return the pycountry name for a country, or the stripped input when unknown"""
        match = self.lookup_country(country)
        if match is not None:
            return match.name
        return country.strip() if country else country
