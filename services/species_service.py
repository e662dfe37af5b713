import re
from typing import List, Optional

from tortoise.expressions import Q

from models.plant import Species
from services.plant_service import serialize_species
from services.validation import validate_location

MAX_SEARCH_LIMIT = 50
DEFAULT_SEARCH_LIMIT = 20

# AI models often answer with a nickname the catalog doesn't use
COMMON_ALIASES = {
    "pothos": ["devil's ivy", "golden pothos", "epipremnum aureum"],
    "monstera": ["swiss cheese plant", "monstera deliciosa", "split-leaf philodendron"],
    "snake plant": ["sansevieria", "mother-in-law's tongue", "dracaena trifasciata"],
    "zz plant": ["zamioculcas zamiifolia", "zanzibar gem"],
    "peace lily": ["spathiphyllum"],
    "spider plant": ["chlorophytum comosum", "airplane plant"],
    "rubber plant": ["ficus elastica", "rubber tree"],
    "fiddle leaf fig": ["ficus lyrata"],
    "aloe vera": ["aloe", "medicinal aloe"],
    "jade plant": ["crassula ovata", "money plant", "lucky plant"],
    "boston fern": ["nephrolepis exaltata", "sword fern"],
    "english ivy": ["hedera helix", "common ivy"],
    "chinese evergreen": ["aglaonema"],
    "calathea": ["prayer plant", "peacock plant"],
    "dieffenbachia": ["dumb cane"],
    "anthurium": ["flamingo flower", "laceleaf"],
}


def normalize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9\s]", "", name.lower()).strip()


def find_alias(name: Optional[str]) -> Optional[str]:
    """Canonical catalog name for a known alias, or None."""
    if not name:
        return None
    normalized = normalize_name(name)
    for canonical, aliases in COMMON_ALIASES.items():
        if normalized == canonical or normalized in (normalize_name(a) for a in aliases):
            return canonical
    return None


class SpeciesService:

    @staticmethod
    async def search(q: Optional[str] = None, location: Optional[str] = None, limit: int = DEFAULT_SEARCH_LIMIT):
        """
        Case-insensitive search on common or scientific name, alphabetical.

        ``location`` keeps species suitable for INDOOR or OUTDOOR; species
        without suitability data are kept too.
        """
        limit = max(1, min(limit or DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT))
        if location is not None and validate_location(location):
            location = None

        query = Species.all()
        q = (q or "").strip()
        if len(q) >= 2:
            query = Species.filter(Q(common_name__icontains=q) | Q(scientific_name__icontains=q))

        species = await query.order_by("common_name")
        if location is not None:
            species = [s for s in species if not s.suitable_for or location in s.suitable_for]

        return {"species": [serialize_species(s) for s in species[:limit]]}

    @staticmethod
    async def match(species_name: Optional[str], scientific_name: Optional[str] = None, limit: int = 3) -> List[Species]:
        """Catalog entries for an identified plant: scientific name first, then common name and aliases."""
        matches = []
        seen = set()

        def add(found):
            for s in found:
                if s.id not in seen:
                    seen.add(s.id)
                    matches.append(s)

        if scientific_name:
            add(await Species.filter(scientific_name__iexact=scientific_name.strip()))

        for term in (species_name, find_alias(species_name)):
            if len(matches) >= limit:
                break
            if term:
                add(await Species.filter(common_name__icontains=term.strip()).order_by("common_name").limit(limit))

        return matches[:limit]
