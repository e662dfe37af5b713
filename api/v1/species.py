from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_current_user
from models.user import User
from services.species_service import DEFAULT_SEARCH_LIMIT, SpeciesService

router = APIRouter(prefix="/api/v1/species", tags=["Species"])


@router.get("")
async def search_species(
        q: Optional[str] = None,
        location: Optional[str] = None,
        limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1),
        current_user: User = Depends(get_current_user),
):
    return await SpeciesService.search(q, location, limit)
