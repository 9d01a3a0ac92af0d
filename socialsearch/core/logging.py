from __future__ import annotations

import logging

from socialsearch.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    # Keep noisy libraries at WARNING
    for name in ("httpx", "httpcore", "aiosqlite", "arq.worker"):
        logging.getLogger(name).setLevel(logging.WARNING)
