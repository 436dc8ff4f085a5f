#!/usr/bin/env python3
"""
Run script for the NodeFlow server.

Usage:
    python run.py

Or with custom settings:
    HOST=127.0.0.1 PORT=8080 DATA_FLOW_MODE=upstream python run.py
"""

import os

import uvicorn

from nodeflow.config import settings


def main():
    """Run the FastAPI application."""
    reload = os.getenv("RELOAD", "true").lower() == "true"
    base = f"http://{settings.HOST}:{settings.PORT}"

    print(f"""
  {settings.APP_NAME} v{settings.APP_VERSION}
  Async workflow execution engine

  Server:     {base}
  API Docs:   {base}/docs
  ReDoc:      {base}/redoc
  Data flow:  {settings.DATA_FLOW_MODE}
    """)

    uvicorn.run(
        "nodeflow.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
