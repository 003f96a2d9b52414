import structlog
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

logger = structlog.get_logger()


class AppError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ConfigurationError(Exception):
    pass


class ImageServiceError(Exception):
    """Base for failures raised by the upload and render pipelines.

    ``status_code`` is the HTTP status the endpoint layer answers with.
    """

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_app_error(self) -> AppError:
        return AppError(status_code=self.status_code, detail=self.detail)


class InvalidFilenameError(ImageServiceError):
    status_code = 400

    def __init__(self, detail: str = "Invalid or missing filename") -> None:
        super().__init__(detail)


class UnauthorizedError(ImageServiceError):
    status_code = 401

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(detail)


class ImageNotFoundError(ImageServiceError):
    status_code = 404

    def __init__(self, detail: str = "File not found") -> None:
        super().__init__(detail)


class InvalidParameterError(ImageServiceError):
    status_code = 400

    def __init__(self, field: str, detail: str | None = None) -> None:
        super().__init__(detail or f"Invalid {field} parameter")
        self.field = field


class InvalidUploadError(ImageServiceError):
    status_code = 400


class ImageDecodeError(ImageServiceError):
    status_code = 500


class ImageEncodeError(ImageServiceError):
    status_code = 500


class StorageError(ImageServiceError):
    status_code = 500


async def _app_error_handler(request: Request, exc: AppError) -> PlainTextResponse:
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


async def _service_error_handler(request: Request, exc: ImageServiceError) -> PlainTextResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log("request_failed", path=request.url.path, status=exc.status_code, error=exc.detail)
    return await _app_error_handler(request, exc.to_app_error())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ImageServiceError, _service_error_handler)  # type: ignore[arg-type]
