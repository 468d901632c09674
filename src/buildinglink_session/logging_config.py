import logging
import os
from pathlib import Path
from typing import Optional


# httpx logs every request at INFO, with full URLs (OIDC callbacks carry codes in the query string).
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(
    level: str = "INFO",
    file_path: Optional[str] = None,
    *,
    noisy_level: Optional[str] = None,
) -> None:
    """
    Root logging for the session client. `noisy_level` (or `NOISY_LOG_LEVEL`) sets the httpx loggers.
    """
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        handlers=handlers,
        force=True,  # safe to call again after the config is (re)loaded
    )

    noisy_level = (noisy_level or os.getenv("NOISY_LOG_LEVEL") or "WARNING").upper()
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(noisy_level)
