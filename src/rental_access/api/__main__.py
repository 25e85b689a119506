"""
rental_access.api.__main__

Entrypoint: `python -m rental_access.api`.

Behind a reverse proxy, set RENTAL_FORWARDED_ALLOW_IPS so the client address
recorded in audit rows is the caller's, not the proxy's.
"""

from __future__ import annotations

import uvicorn

from rental_access.api.app import create_app
from rental_access.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,  # structlog owns log formatting
    )


if __name__ == "__main__":
    main()
