"""
NoteGraph server entry point.

    python main.py

Host and port come from NOTEGRAPH_HOST / NOTEGRAPH_PORT. Set
ENVIRONMENT=production to disable auto-reload.
"""

import os

import uvicorn

from app import app

__all__ = ["app"]


def run() -> None:
    reload = os.getenv("ENVIRONMENT", "development") == "development"

    uvicorn.run(
        "app:app",
        host=os.getenv("NOTEGRAPH_HOST", "0.0.0.0"),
        port=int(os.getenv("NOTEGRAPH_PORT", "8000")),
        reload=reload,
        log_level=os.getenv("NOTEGRAPH_LOG_LEVEL", "INFO").lower(),
    )


if __name__ == "__main__":
    run()
