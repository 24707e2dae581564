from __future__ import annotations

import logging

from fastapi import FastAPI

from ..core.config import LotterySettings
from ..features.classroom import ClassroomService, create_classroom_router

__all__ = ["create_app", "main"]

logger = logging.getLogger(__name__)


def create_app(
    service: ClassroomService | None = None,
    settings: LotterySettings | None = None,
) -> FastAPI:
    settings = settings or LotterySettings.from_env()
    service = service or ClassroomService.from_settings(settings)

    app = FastAPI(title="Seat Lottery")
    app.state.service = service
    app.include_router(create_classroom_router(service))

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app


def main() -> None:  # pragma: no cover - runner
    import uvicorn

    settings = LotterySettings.from_env()
    logging.basicConfig(level=settings.log_level.upper())
    app = create_app(settings=settings)
    logger.info("Serving seat lottery", extra={"host": settings.host, "port": settings.port})
    uvicorn.run(app, host=settings.host, port=settings.port, factory=False)


if __name__ == "__main__":  # pragma: no cover
    main()
