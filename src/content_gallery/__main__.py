"""Run the content gallery server with uvicorn."""

import uvicorn

from content_gallery.api.app import create_app
from content_gallery.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
