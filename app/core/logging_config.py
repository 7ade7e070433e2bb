"""
GreenPantry API — Logging setup
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # uvicorn installs its own handlers; keep access logs at the same level
    logging.getLogger("uvicorn.access").setLevel(level.upper())
