import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

import pandas as pd

from .contact import Contact, FIELD_NAMES
from .. import settings
from ..processors.address import AddressProcessor

logger = logging.getLogger(__name__)


@dataclass
class StatisticsResult:
    total_contacts: int = 0
    contacts_by_city: Dict[str, int] = field(default_factory=dict)
    contacts_by_country: Dict[str, int] = field(default_factory=dict)
    with_phone: int = 0
    with_address: int = 0
    top_city: Optional[str] = None
    top_country: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _present(column: pd.Series) -> pd.Series:
    """Mask of non-blank values"""
    return column.fillna("").astype(str).str.strip() != ""


def _top_counts(column: pd.Series, limit: int) -> Dict[str, int]:
    """Counts per value, highest first; ties keep first appearance order"""
    values = column[_present(column)]
    if values.empty:
        return {}
    counts = values.groupby(values, sort=False).size()
    counts = counts.sort_values(ascending=False, kind="stable")
    return {str(key): int(count) for key, count in counts.head(limit).items()}


def compute_statistics(
    contacts: List[Contact],
    canonical_countries: bool = False,
    limit: int = settings.TOP_N_STATISTICS,
) -> StatisticsResult:
    """Aggregate counts over all contacts"""
    logger.info(f"Computing statistics for {len(contacts)} contacts")
    df = pd.DataFrame([contact.to_dict() for contact in contacts], columns=list(FIELD_NAMES))

    if canonical_countries and not df.empty:
        address_processor = AddressProcessor()
        df["country"] = df["country"].map(
            lambda value: address_processor.canonical_country(value) if isinstance(value, str) else value
        )

    by_city = _top_counts(df["city"], limit)
    by_country = _top_counts(df["country"], limit)

    return StatisticsResult(
        total_contacts=len(df),
        contacts_by_city=by_city,
        contacts_by_country=by_country,
        with_phone=int(_present(df["phone"]).sum()),
        with_address=int(_present(df["address"]).sum()),
        top_city=next(iter(by_city), None),
        top_country=next(iter(by_country), None),
    )
