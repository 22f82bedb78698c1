import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .contact import Contact
from .. import settings
from ..utils.string import is_blank, string_similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidatePair:
    """Two contacts whose similarity score is above the detection threshold."""

    contact1_id: Optional[int]
    contact2_id: Optional[int]
    score: float

    @property
    def score_percent(self) -> int:
        # Half-up, 0.125 gives 13
        return int(math.floor(self.score * 100 + 0.5))

    def to_dict(self) -> dict:
        return {
            "contact1Id": self.contact1_id,
            "contact2Id": self.contact2_id,
            "score": self.score,
            "scorePercent": self.score_percent,
        }


class SimilarityScorer:
    """Weighted similarity between two contacts.

    Last and first names are compared with a normalized edit distance, phones
    by exact equality. A criterion counts only when both contacts have a
    non-blank value for it. Weights of skipped criteria are dropped, not
    redistributed, so two contacts without phones can score at most
    ``last_name_weight + first_name_weight``.
    """

    def __init__(
        self,
        last_name_weight: float = settings.LAST_NAME_WEIGHT,
        first_name_weight: float = settings.FIRST_NAME_WEIGHT,
        phone_weight: float = settings.PHONE_WEIGHT,
    ):
        self.name_weights = (
            ("last_name", last_name_weight),
            ("first_name", first_name_weight),
        )
        self.phone_weight = phone_weight

    def score(self, contact1: Contact, contact2: Contact) -> float:
        score = 0.0
        criteria = 0

        for field, weight in self.name_weights:
            value1 = getattr(contact1, field)
            value2 = getattr(contact2, field)
            if is_blank(value1) or is_blank(value2):
                continue
            score += weight * string_similarity(value1, value2)
            criteria += 1

        # Raw comparison: "77 111 11 11" and "771111111" do not match
        if not is_blank(contact1.phone) and not is_blank(contact2.phone):
            if contact1.phone == contact2.phone:
                score += self.phone_weight
            criteria += 1

        return score if criteria > 0 else 0.0


class DuplicateDetector:
    def __init__(self, scorer: Optional[SimilarityScorer] = None, threshold: float = settings.DUPLICATE_THRESHOLD):
        self.scorer = scorer or SimilarityScorer()
        self.threshold = threshold

    def detect(self, contacts: Sequence[Contact]) -> List[CandidatePair]:
        """Compare every pair once, in input order, and keep those above the threshold"""
        candidates: List[CandidatePair] = []
        logger.debug(f"Scanning {len(contacts)} contacts for duplicates")

        for i, left in enumerate(contacts):
            for right in contacts[i + 1 :]:
                score = self.scorer.score(left, right)
                if score <= self.threshold:
                    continue

                pair = CandidatePair(left.id, right.id, score)
                candidates.append(pair)
                logger.info(
                    f"Duplicate detected: {left.last_name} {left.first_name} and "
                    f"{right.last_name} {right.first_name} (score: {pair.score_percent}%)"
                )

        logger.debug(f"Found {len(candidates)} candidate pairs")
        return candidates
