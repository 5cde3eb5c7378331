import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the whole process."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    # Access logs duplicate what the services already log.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
