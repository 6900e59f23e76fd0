import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    """Attach a console handler to the ``tasker`` logger tree."""
    root = logging.getLogger("tasker")
    root.setLevel(level)

    # Lifespan can run more than once per process (tests); keep a single handler.
    for handler in root.handlers:
        if getattr(handler, "_tasker_console", False):
            handler.setLevel(level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.setLevel(level)
    handler._tasker_console = True
    root.addHandler(handler)
