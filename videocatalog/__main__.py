# videocatalog/__main__.py
from __future__ import annotations
import asyncio, logging, sys

from hypercorn.asyncio import serve
from hypercorn.config import Config

from videocatalog.app import create_app
from videocatalog.errors import ConfigurationError
from videocatalog.settings import load_settings

logger = logging.getLogger("videocatalog")


def main() -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"[videocatalog] ERROR: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings)
    config = Config()
    config.bind = [f"{settings.host}:{settings.port}"]
    config.accesslog = "-"
    logger.info("Listening on %s", config.bind[0])
    asyncio.run(serve(app, config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
