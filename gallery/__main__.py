"""Run the gallery backend with uvicorn: ``python -m gallery``."""

import uvicorn

from gallery.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("gallery.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
