# path: territory-conquest/territory_conquest/api/routes/territories.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from territory_conquest.api.deps import get_store
from territory_conquest.models.territory_models import Territory, UserTotal
from territory_conquest.services.territory_store import InMemoryTerritoryStore

router = APIRouter(tags=["territories"])


@router.get("/territories", response_model=List[Territory])
def list_territories(store: InMemoryTerritoryStore = Depends(get_store)) -> List[Territory]:
    return store.list_territories()


@router.get("/territories/{user_id}", response_model=List[Territory])
def list_user_territories(user_id: str, store: InMemoryTerritoryStore = Depends(get_store)) -> List[Territory]:
    return store.territories_for(user_id)


@router.get("/users/{user_id}/total-area", response_model=UserTotal)
def user_total_area(user_id: str, store: InMemoryTerritoryStore = Depends(get_store)) -> UserTotal:
    return store.user_total(user_id)
