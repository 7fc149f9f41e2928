"""
Registrar Backend — Server Entry Point
========================================

Usage:
    python -m registrar

Starts uvicorn on BACKEND_HOST:BACKEND_PORT. Startup failures (missing
DATABASE_URL, unreachable database, failed migration) make the process
exit with a non-zero status.
"""

import uvicorn

from registrar.config import settings


def main() -> None:
    uvicorn.run(
        "registrar.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
        lifespan="on",
    )


if __name__ == "__main__":
    main()
