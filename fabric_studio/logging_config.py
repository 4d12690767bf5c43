import logging
import time
from contextlib import contextmanager
from typing import Iterator

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

log = logging.getLogger("fabric_studio")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


@contextmanager
def measure(name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.info(f"{name} took {elapsed_ms:.1f}ms")
