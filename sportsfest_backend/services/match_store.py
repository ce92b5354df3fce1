# sportsfest_backend/services/match_store.py
# Durable storage for match documents and their foul sub-collection.
# Each call uses its own session; returned objects are detached snapshots.

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete
from sqlmodel import select

from sportsfest_backend.core.database import async_session_maker
from sportsfest_backend.models.foul_model import Foul
from sportsfest_backend.models.match_model import Match


class MatchStore:
    """
    Single-document store: every save of a match (together with any foul rows
    added or removed alongside it) commits as one transaction.
    """

    def __init__(self, session_maker=async_session_maker):
        self._session_maker = session_maker

    # ==========================================
    # MATCHES
    # ==========================================

    async def create_match(self, match: Match) -> Match:
        async with self._session_maker() as session:
            session.add(match)
            await session.commit()
            await session.refresh(match)
            return match

    async def get_match(self, match_id: int) -> Optional[Match]:
        async with self._session_maker() as session:
            return await session.get(Match, match_id)

    async def list_matches(self, status=None, sport=None) -> List[Match]:
        stmt = select(Match)
        if status is not None:
            stmt = stmt.where(Match.status == status)
        if sport is not None:
            stmt = stmt.where(Match.sport == sport)
        stmt = stmt.order_by(Match.scheduled_at, Match.id)

        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def save_match(
        self,
        match: Match,
        add_fouls: Iterable[Foul] = (),
        remove_fouls: Iterable[Foul] = (),
    ) -> Match:
        """
        Persist the match (bumping its version) and apply foul row changes
        in the same transaction. Nothing is written if the commit fails.
        """
        async with self._session_maker() as session:
            stored = await session.merge(match)
            stored.version = (match.version or 0) + 1
            stored.updated_at = datetime.utcnow()

            for foul in add_fouls:
                session.add(foul)
            for foul in remove_fouls:
                existing = await session.get(Foul, foul.id)
                if existing is not None:
                    await session.delete(existing)

            await session.commit()
            return stored

    async def delete_match(self, match_id: int) -> bool:
        async with self._session_maker() as session:
            match = await session.get(Match, match_id)
            if match is None:
                return False
            await session.execute(delete(Foul).where(Foul.match_id == match_id))
            await session.delete(match)
            await session.commit()
            return True

    # ==========================================
    # FOULS
    # ==========================================

    async def list_fouls(self, match_id: int) -> List[Foul]:
        stmt = select(Foul).where(Foul.match_id == match_id).order_by(Foul.timestamp, Foul.id)
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_foul(self, match_id: int, foul_id: int) -> Optional[Foul]:
        async with self._session_maker() as session:
            foul = await session.get(Foul, foul_id)
            if foul is None or foul.match_id != match_id:
                return None
            return foul
