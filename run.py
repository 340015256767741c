"""
Local server entry point for the site CMS API.

asyncpg needs a SelectorEventLoop, but uvicorn picks ProactorEventLoop on
Windows, so the loop factory is swapped before uvicorn starts.

Usage:
    python run.py                      # serve on 127.0.0.1:8000
    python run.py --reload             # restart on code changes
    python run.py --cache memory       # no Redis: in-process cache and rate limits
"""
import argparse
import os
import sys

if sys.platform == "win32":
    import asyncio

    import uvicorn.loops.asyncio as _uvicorn_loops

    def _selector_loop_factory(use_subprocess: bool = False):
        return asyncio.SelectorEventLoop

    _uvicorn_loops.asyncio_loop_factory = _selector_loop_factory

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the site CMS API")
    parser.add_argument("--reload", action="store_true", default=False)
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--cache", choices=("redis", "memory"), help="override CACHE_BACKEND")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    if args.cache:
        os.environ["CACHE_BACKEND"] = args.cache

    from sitecms.config import settings

    uvicorn.run(
        "sitecms.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
        loop="asyncio",
    )
