import uvicorn

from simple_throttle.core.app_factory import create_app
from simple_throttle.core.config import settings

app = create_app()


def run() -> None:
    """Serve the API with uvicorn (``simple-throttle-api`` console script)."""

    uvicorn.run(
        "simple_throttle.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
