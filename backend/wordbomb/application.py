from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wordbomb.api.errors import install_error_handlers
from wordbomb.api.router import api_router
from wordbomb.runtime import GameRuntime


def create_app(runtime: GameRuntime | None = None) -> FastAPI:
    app = FastAPI(title="Word Bomb Backend", version="1.0.0")
    app.state.runtime = runtime or GameRuntime()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        await app.state.runtime.startup()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.runtime.shutdown()

    return app
