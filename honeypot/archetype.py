"""archetype.py — Dominant Scam Archetype Classifier
====================================================

Reduces the session's accumulated category weights to one reporting label.

    banking, credentialRequest, upiPayment, authorityImpersonation → banking
    lotteryPrize, phishingLinks                                    → phishing
    fakeOffers                                                     → fakeOffers
    urgency                                                        → urgencyOnly
    contactRequests                                                → contactRequests

The heaviest group wins when its share of the total weight reaches
``archetype_dominance_share``; otherwise the session is ``mixed``. Equal
weights are resolved in favour of the group detected first.
"""

from typing import Dict, Mapping, Optional

from honeypot.config import EngineConfig
from honeypot.models import Archetype, ScamCategory


CATEGORY_ARCHETYPES: Dict[ScamCategory, Archetype] = {
    ScamCategory.BANKING: Archetype.BANKING,
    ScamCategory.CREDENTIAL_REQUEST: Archetype.BANKING,
    ScamCategory.UPI_PAYMENT: Archetype.BANKING,
    ScamCategory.AUTHORITY: Archetype.BANKING,
    ScamCategory.LOTTERY_PRIZE: Archetype.PHISHING,
    ScamCategory.PHISHING_LINKS: Archetype.PHISHING,
    ScamCategory.FAKE_OFFERS: Archetype.FAKE_OFFERS,
    ScamCategory.URGENCY: Archetype.URGENCY_ONLY,
    ScamCategory.CONTACT_REQUESTS: Archetype.CONTACT_REQUESTS,
}


class ArchetypeClassifier:

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def classify(self, category_weights: Mapping[ScamCategory, float]) -> Optional[Archetype]:
        """Label a session from its category weights (iteration order = first detection)."""
        groups: Dict[Archetype, float] = {}
        for category, weight in category_weights.items():
            if weight <= 0:
                continue
            archetype = CATEGORY_ARCHETYPES[ScamCategory(category)]
            groups[archetype] = groups.get(archetype, 0.0) + weight

        if not groups:
            return None

        total = sum(groups.values())
        # sorted() is stable, so equal weights keep first-detection order
        ranked = sorted(groups.items(), key=lambda item: item[1], reverse=True)
        top, top_weight = ranked[0]
        if top_weight / total >= self.config.archetype_dominance_share:
            return top
        return Archetype.MIXED
