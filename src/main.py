import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.router import router
from src.config import Settings, settings
from src.core.exceptions import ConfigurationError, register_exception_handlers
from src.core.logging import configure_logging
from src.services.blob_store import BlobStore
from src.services.render import RenderPipeline
from src.services.upload import UploadPipeline

logger = structlog.get_logger()


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    if not config.bearer_token:
        raise ConfigurationError("Bearer token must be provided.")

    app = FastAPI(title=config.app_name, debug=config.debug)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization"],
    )
    register_exception_handlers(app)

    store = BlobStore(config.storage_dir)
    app.state.upload_pipeline = UploadPipeline(store, config.bearer_token, config.max_upload_bytes)
    app.state.render_pipeline = RenderPipeline(store)

    app.include_router(router)
    return app


def main() -> None:
    config = Settings(_cli_parse_args=True)
    configure_logging(config.log_level, config.debug)
    try:
        app = create_app(config)
    except ConfigurationError as e:
        logger.error("missing_bearer_token", error=str(e))
        raise SystemExit(1) from e

    logger.info(
        "server_starting",
        host=config.host,
        port=config.port,
        storage_dir=config.storage_dir,
        max_upload_bytes=config.max_upload_bytes,
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
