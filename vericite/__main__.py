"""Run the VeriCite API server with uvicorn."""

import uvicorn

from vericite.config import settings


def main() -> None:
    uvicorn.run("vericite.main:app", host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
