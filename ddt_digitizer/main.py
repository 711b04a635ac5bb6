"""Application entry point for the DDT digitizer API server."""

import uvicorn

from ddt_digitizer.api.app import app, get_config
from ddt_digitizer.utils.logger import setup_logging


def serve(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Start the FastAPI application server."""
    config = get_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host=host, port=port)


def main() -> None:
    serve()


if __name__ == "__main__":
    main()
