"""
HoneyBee - Main Entry Point

IT content aggregation: collects articles, videos and courses from tech
platforms and serves the merged corpus over HTTP.

Usage:
    python main.py              # serve the API
    python main.py collect      # one fresh collection, then exit
    python main.py courses      # one course collection, then exit
"""

import argparse
import asyncio
import json
import logging
import sys

import structlog
import uvicorn

from src.config import get_settings


def configure_logging(level: str) -> None:
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=getattr(logging, level))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger(__name__)


async def run_once(job: str) -> int:
    """Run one collection job outside the server. Returns the exit code."""
    from src.core.container import initialize_container, shutdown_container
    from src.core.exceptions import CollectionRunError

    container = await initialize_container()
    try:
        if job == "courses":
            report = await container.orchestrator.collect_courses()
        else:
            report = await container.orchestrator.collect_fresh()
    except CollectionRunError as e:
        logger.error("collection_failed", job=job, error=str(e))
        return 1
    finally:
        await shutdown_container()

    print(json.dumps(report.summary(), ensure_ascii=False, indent=2))
    return 0


def main():
    """Main entry point for running the application."""
    parser = argparse.ArgumentParser(description="HoneyBee content collector")
    parser.add_argument("command", nargs="?", choices=["serve", "collect", "courses"], default="serve")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command != "serve":
        sys.exit(asyncio.run(run_once(args.command)))

    logger.info(
        "starting_server",
        host=settings.api_host,
        port=settings.api_port,
        environment=settings.app_env,
    )

    uvicorn.run(
        "src.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
