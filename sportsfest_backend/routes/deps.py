# sportsfest_backend/routes/deps.py
# Request-scoped access to the services wired up in main.create_app.

from fastapi import Request

from sportsfest_backend.services.foul_ledger import FoulLedger
from sportsfest_backend.services.match_coordinator import MatchCoordinator


def get_coordinator(request: Request) -> MatchCoordinator:
    return request.app.state.coordinator


def get_ledger(request: Request) -> FoulLedger:
    return request.app.state.ledger
