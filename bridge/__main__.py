"""Run the proxy with uvicorn: ``python -m bridge``."""

import uvicorn

from bridge.app.core.config import settings


def main() -> None:
    # log_config=None keeps the dictConfig applied by create_app()
    uvicorn.run(
        "bridge.app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
