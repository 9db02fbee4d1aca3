import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging on stderr, leaving stdout to progress output."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
