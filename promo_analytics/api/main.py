"""Server entry point

Run with ``promo-analytics`` or
``uvicorn promo_analytics.api.main:create_app --factory``.
"""

import uvicorn

from promo_analytics.api.app import create_app
from promo_analytics.api.core.config import get_settings

__all__ = ["create_app", "run"]


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "promo_analytics.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
