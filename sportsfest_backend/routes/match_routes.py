# sportsfest_backend/routes/match_routes.py

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from sportsfest_backend.core.auth import require_admin
from sportsfest_backend.core.sport_config import MatchStatus, Sport
from sportsfest_backend.models.admin_model import Admin
from sportsfest_backend.models.match_model import MatchCreate, MatchRead, StatusUpdate
from sportsfest_backend.routes.deps import get_coordinator
from sportsfest_backend.services.match_coordinator import MatchCoordinator

router = APIRouter()


@router.get("", response_model=List[MatchRead])
async def list_matches(
    status: Optional[MatchStatus] = None,
    sport: Optional[Sport] = None,
    coordinator: MatchCoordinator = Depends(get_coordinator),
):
    """List matches, optionally filtered by status and/or sport."""
    return await coordinator.list_matches(status=status, sport=sport)


@router.get("/{match_id}", response_model=MatchRead)
async def get_match(match_id: int, coordinator: MatchCoordinator = Depends(get_coordinator)):
    """
    Current match document. Live viewers re-fetch this after reconnecting,
    since missed broadcasts are never replayed.
    """
    return await coordinator.get_match(match_id)


@router.post("", response_model=MatchRead, status_code=201)
async def create_match(
    data: MatchCreate,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    admin: Admin = Depends(require_admin),
):
    return await coordinator.create_match(data)


@router.delete("/{match_id}")
async def delete_match(
    match_id: int,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    admin: Admin = Depends(require_admin),
):
    await coordinator.delete_match(match_id)
    return {"message": f"Match {match_id} deleted"}


@router.put("/{match_id}/status", response_model=MatchRead)
async def update_status(
    match_id: int,
    update: StatusUpdate,
    coordinator: MatchCoordinator = Depends(get_coordinator),
    admin: Admin = Depends(require_admin),
):
    return await coordinator.set_status(match_id, update)


@router.post("/{match_id}/actions", response_model=MatchRead)
async def apply_action(
    match_id: int,
    payload: Dict[str, Any] = Body(...),
    coordinator: MatchCoordinator = Depends(get_coordinator),
    admin: Admin = Depends(require_admin),
):
    """
    Apply one scoring action, e.g.
    {"action": "recordBall", "runs": 4} or {"action": "updateSetPoints", "team": "A", "delta": 1}.
    """
    return await coordinator.handle_update(match_id, payload)
