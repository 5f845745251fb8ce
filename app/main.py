import logging
from datetime import datetime, timezone
from typing import Callable

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings
from app.database import make_engine, make_session_factory
from app.errors import VaultError
from app.routers.files import router as files_router
from app.services.blob_store import BlobStore
from app.services.cipher import Cipher
from app.services.verifier import KeyVerifier


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_app(
    settings: Settings | None = None, clock: Callable[[], datetime] = utcnow
) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()

    app = FastAPI(title="Sealbox", version="0.1.0")
    engine = make_engine(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.cipher = Cipher()
    app.state.verifier = KeyVerifier(cost=settings.verifier_cost)
    app.state.blob_store = BlobStore(settings.blob_dir)
    app.state.clock = clock

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_methods=["POST"],
            allow_headers=["*"],
        )

    @app.exception_handler(VaultError)
    async def vault_error_handler(request: Request, exc: VaultError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    app.include_router(files_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
