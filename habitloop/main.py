import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from habitloop.core.config import settings
from habitloop.core.logger import setup_logger
from habitloop.routes import analytics, habits
from habitloop.services.progress import ProgressEngine
from habitloop.services.store import HabitStore, MemoryHabitStore

logger = logging.getLogger(__name__)


async def build_store() -> HabitStore:
    if settings.STORE_BACKEND == "mongo":
        from habitloop.core.database import get_database
        from habitloop.services.mongo_store import MongoHabitStore

        store = MongoHabitStore(get_database())
        await store.ensure_indexes()
        return store
    return MemoryHabitStore()


def create_app(store: HabitStore = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logger()
        engine = ProgressEngine(store or await build_store())
        await engine.load()
        app.state.engine = engine
        app.state.write_lock = asyncio.Lock()
        logger.info(f"{settings.APP_NAME} started ({settings.STORE_BACKEND} store, zone {settings.TIMEZONE})")
        yield
        if engine.unsynced:
            logger.warning(f"Shutting down with unsynced habits: {sorted(engine.unsynced)}")

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    # CORS
    origins = [
        settings.FRONTEND_URL,
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(habits.router)
    app.include_router(analytics.router)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.APP_NAME} API"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
