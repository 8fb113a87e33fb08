#!/usr/bin/env python3
"""
Deployment entry point for the news dashboard API.

Hosting platforms look for an `app` object at the repository root:
    uvicorn app:app --host 0.0.0.0 --port 3456

Running this file directly starts the server on the configured PORT.
"""
import os
import sys

# Checkouts that were not pip-installed still need the src layout on the path
_src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "newsdesk", "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

from newsdesk.server import app, run_server  # noqa: E402

__all__ = ["app"]

if __name__ == "__main__":
    run_server()
