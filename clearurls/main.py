from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clearurls.api.clean import router as clean_router
from clearurls.config import get_settings
from clearurls.errors import RulesetError
from clearurls.services.cleaner import UrlCleaner


def create_app() -> FastAPI:
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        deps = SimpleNamespace()
        deps.settings = settings
        deps.cleaner = None

        try:
            if settings.rules_path:
                deps.cleaner = UrlCleaner.from_file(
                    settings.rules_path, settings.allow_referral_marketing
                )
            else:
                deps.cleaner = UrlCleaner.from_default(settings.allow_referral_marketing)
        except RulesetError as e:
            logging.getLogger(__name__).error("Rules init failed: %s", e)

        app.state.deps = deps
        yield

    app = FastAPI(title="ClearURLs API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root() -> dict:
        return {"ok": True}

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    app.include_router(clean_router)

    return app


app = create_app()
