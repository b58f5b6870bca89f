import uvicorn
from fastapi import FastAPI

from chatbridge import __version__
from chatbridge.config import settings
from chatbridge.logging_config import get_logger, setup_logging
from chatbridge.routers import webhook

setup_logging(settings.log_level, settings.log_format)

logger = get_logger("main")

app = FastAPI(
    title="chatbridge",
    description="Messenger webhook bridge to the Wit.ai bot engine",
    version=__version__,
)

app.include_router(webhook.router)


@app.on_event("startup")
async def check_configuration() -> None:
    missing = settings.missing_required()
    if missing:
        logger.error(
            "Missing configuration",
            extra={"context": {"missing": missing}},
        )


@app.get("/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
