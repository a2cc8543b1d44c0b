"""ASGI entry point: ``uvicorn taskbuster.api.main:app``."""

from taskbuster.api.app import create_app
from taskbuster.config import settings

# Pipeline is built (and credentials checked) on the startup event
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taskbuster.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
    )
