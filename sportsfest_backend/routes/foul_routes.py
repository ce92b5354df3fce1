# sportsfest_backend/routes/foul_routes.py

from typing import List

from fastapi import APIRouter, Depends

from sportsfest_backend.core.auth import require_admin
from sportsfest_backend.models.admin_model import Admin
from sportsfest_backend.models.foul_model import FoulCreate, FoulRead
from sportsfest_backend.models.match_model import MatchRead, SuspendedPlayer
from sportsfest_backend.routes.deps import get_ledger
from sportsfest_backend.services.foul_ledger import FoulLedger

router = APIRouter()


@router.get("/{match_id}/fouls", response_model=List[FoulRead])
async def list_fouls(match_id: int, ledger: FoulLedger = Depends(get_ledger)):
    return await ledger.list_fouls(match_id)


@router.get("/{match_id}/suspensions", response_model=List[SuspendedPlayer])
async def list_suspensions(match_id: int, ledger: FoulLedger = Depends(get_ledger)):
    """Players on two yellows or one red for this match."""
    return await ledger.suspensions(match_id)


@router.post("/{match_id}/fouls", response_model=MatchRead, status_code=201)
async def add_foul(
    match_id: int,
    data: FoulCreate,
    ledger: FoulLedger = Depends(get_ledger),
    admin: Admin = Depends(require_admin),
):
    return await ledger.add_foul(match_id, data)


@router.delete("/{match_id}/fouls/{foul_id}", response_model=MatchRead)
async def remove_foul(
    match_id: int,
    foul_id: int,
    ledger: FoulLedger = Depends(get_ledger),
    admin: Admin = Depends(require_admin),
):
    return await ledger.remove_foul(match_id, foul_id)
