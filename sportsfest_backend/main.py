from fastapi import FastAPI

from sportsfest_backend.core.config import BROADCAST_QUEUE_SIZE
from sportsfest_backend.core.database import async_session_maker, engine, init_db
from sportsfest_backend.core.errors import MatchError, match_error_handler
from sportsfest_backend.core.logger import get_logger
from sportsfest_backend.services.broadcast import BroadcastChannel
from sportsfest_backend.services.foul_ledger import FoulLedger
from sportsfest_backend.services.match_coordinator import MatchCoordinator
from sportsfest_backend.services.match_store import MatchStore

# --- Routers ---
from sportsfest_backend.core.auth import router as auth_router
from sportsfest_backend.routes.match_routes import router as match_router
from sportsfest_backend.routes.foul_routes import router as foul_router
from sportsfest_backend.routes.live_routes import router as live_router

log = get_logger("main")


def create_app(db_engine=None, session_maker=None) -> FastAPI:
    """
    Build the API with its own store, broadcast channel and coordinator.
    Tests pass a throwaway engine/session maker; production uses the defaults.
    """
    db_engine = db_engine or engine
    session_maker = session_maker or async_session_maker

    app = FastAPI(title="SportsFest Live")

    store = MatchStore(session_maker)
    channel = BroadcastChannel(BROADCAST_QUEUE_SIZE)
    coordinator = MatchCoordinator(store, channel)

    app.state.session_maker = session_maker
    app.state.channel = channel
    app.state.coordinator = coordinator
    app.state.ledger = FoulLedger(coordinator)

    @app.on_event("startup")
    async def on_startup():
        # 1️⃣ Init DB tables async
        await init_db(db_engine)
        log.info("✅ Database ready. Live scoring online.")

    app.add_exception_handler(MatchError, match_error_handler)

    # Routers
    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(match_router, prefix="/matches", tags=["Matches"])
    app.include_router(foul_router, prefix="/matches", tags=["Fouls"])
    app.include_router(live_router, tags=["Live"])

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "subscribers": channel.subscriber_count}

    return app


app = create_app()
