# path: territory-conquest/territory_conquest/api/routes/routes.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from territory_conquest.api.deps import get_service, get_store
from territory_conquest.errors import InconsistentAggregate
from territory_conquest.models.route_models import Route, RouteSubmission
from territory_conquest.models.territory_models import ResolutionResult
from territory_conquest.services.conquest_service import ConquestService
from territory_conquest.services.territory_store import InMemoryTerritoryStore

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("", response_model=ResolutionResult)
def submit_route(submission: RouteSubmission, service: ConquestService = Depends(get_service)) -> ResolutionResult:
    try:
        return service.submit(submission)
    except InconsistentAggregate as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{user_id}", response_model=List[Route])
def list_routes(user_id: str, store: InMemoryTerritoryStore = Depends(get_store)) -> List[Route]:
    """Routes a user has submitted, in submission order."""
    return store.list_routes(user_id)
