# path: territory-conquest/territory_conquest/api/deps.py

from __future__ import annotations

from functools import lru_cache

from territory_conquest.services.conquest_service import ConquestService
from territory_conquest.services.territory_store import InMemoryTerritoryStore


@lru_cache(maxsize=1)
def get_store() -> InMemoryTerritoryStore:
    return InMemoryTerritoryStore()


def get_service() -> ConquestService:
    return ConquestService(store=get_store())
