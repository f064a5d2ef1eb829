#!/usr/bin/env python3
"""
Start the review analytics API.

Usage:
    export REVIEW_ANALYTICS_DUCKDB="db/reviews.duckdb"
    # Optional:
    # export REVIEW_ANALYTICS_PORT=8000
    python scripts/run_api.py
"""
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Ensure project root is on sys.path when executed as a script.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def main() -> None:
    load_dotenv()
    host = os.getenv("REVIEW_ANALYTICS_HOST", "127.0.0.1")
    port = int(os.getenv("REVIEW_ANALYTICS_PORT", "8000"))
    uvicorn.run("backend.main:app", host=host, port=port, log_level=os.getenv("REVIEW_ANALYTICS_LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
