"""Run the API with uvicorn: `python -m academics`."""

import uvicorn

from .config import settings


def main():
    uvicorn.run(
        "academics.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENV == "dev",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
