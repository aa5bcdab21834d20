"""Curated places that can be added straight to an itinerary."""

import logging
from typing import List, Optional

from jiantu_travel.api.models import Place

logger = logging.getLogger(__name__)

PERSONAS = ["Free Spirit", "Deep Explorer", "Efficiency Planner", "Creative Traveler"]

RECOMMENDED_PLACES = [
    Place("1", "Forbidden City", "History", 39.9163, 116.3972, 4.9, 60, ("Deep Explorer", "Efficiency Planner")),
    Place("2", "Universal Beijing Resort", "Entertainment", 39.8595, 116.6661, 4.7, 418, ("Free Spirit", "Creative Traveler")),
    Place("3", "Summer Palace", "Nature", 39.9993, 116.2753, 4.8, 30, ("Free Spirit", "Deep Explorer")),
    Place("4", "798 Art District", "Art", 39.9839, 116.4950, 4.6, 0, ("Creative Traveler", "Free Spirit")),
    Place("5", "Temple of Heaven", "History", 39.8822, 116.4066, 4.7, 15, ("Deep Explorer",)),
    Place("6", "Sanlitun Taikoo Li", "Shopping", 39.9360, 116.4549, 4.5, 0, ("Efficiency Planner", "Free Spirit")),
    Place("7", "Mutianyu Great Wall", "Adventure", 40.4320, 116.5629, 4.9, 45, ("Deep Explorer", "Creative Traveler")),
]


def recommend(persona: Optional[str] = None) -> List[Place]:
    """Return the catalog with places matching *persona* first.

    The sort is stable, so within each group the catalog order is kept.
    """
    if persona and persona not in PERSONAS:
        logger.warning(f"Unknown persona '{persona}', returning default order")
    return sorted(RECOMMENDED_PLACES, key=lambda place: persona not in place.tags)


def get_place(place_id: str) -> Optional[Place]:
    for place in RECOMMENDED_PLACES:
        if place.id == place_id:
            return place
    return None


__all__ = ["PERSONAS", "RECOMMENDED_PLACES", "recommend", "get_place"]
