"""Command-line interface for the Reddit thread finder."""

import asyncio
import json
import logging
import logging.config
import sys
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from thread_finder.config import Config
from thread_finder.models.query import Confidence, ExtractionQuery, QueryParseError
from thread_finder.models.result import Match, ResolutionResult
from thread_finder.monitoring.metrics import PrometheusExporter
from thread_finder.resolver import ThreadResolver

app = typer.Typer(help="Thread Finder - locate the Reddit post or comment behind a screenshot")

logger = logging.getLogger(__name__)

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_BAD_INPUT = 2


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = "logs/thread_finder.log") -> None:
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Rotating log file path, or None to log to the console only
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "standard",
            # stdout carries the JSON result
            "stream": "ext://sys.stderr",
        },
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "standard",
            "filename": log_file,
            "maxBytes": 10485760,  # 10 MB
            "backupCount": 5,
            "encoding": "utf8",
        }

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers),
                "level": log_level,
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
            "aiohttp": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str) -> Config:
    """Load configuration and exit with an error listing if it is invalid."""
    config = Config.from_files(config_path)
    validation_errors = config.validate()
    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
        typer.echo("Invalid configuration:\n  " + "\n  ".join(validation_errors), err=True)
        raise typer.Exit(code=EXIT_BAD_INPUT)
    return config


async def run_resolve(config: Config, query: ExtractionQuery, timeout: Optional[float] = None) -> ResolutionResult:
    """
    Resolve a single query with a fresh resolver.

    Args:
        config: Validated configuration
        query: Extraction query to resolve
        timeout: Optional overall time budget in seconds

    Returns:
        The resolution result
    """
    exporter = None
    if config.monitoring.enable_prometheus:
        exporter = PrometheusExporter(config.monitoring.prometheus_port)
        exporter.start_server()

    async with ThreadResolver(config, prometheus_exporter=exporter) as resolver:
        return await resolver.resolve(query, timeout=timeout)


@app.command()
def resolve(
    title: Annotated[Optional[str], typer.Option("--title", "-t", help="Post title read from the screenshot")] = None,
    subreddit: Annotated[Optional[str], typer.Option("--subreddit", "-r", help="Subreddit name (without r/)")] = None,
    username: Annotated[Optional[str], typer.Option("--username", "-u", help="Poster username (without u/)")] = None,
    body: Annotated[Optional[str], typer.Option("--body", "-b", help="Body text snippet")] = None,
    confidence: Annotated[Confidence, typer.Option("--confidence", help="Extraction confidence label")] = Confidence.MEDIUM,
    payload: Annotated[Optional[Path], typer.Option("--payload", "-p", help="Vision model JSON reply to read the query from")] = None,
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config/config.yaml",
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Overall time budget in seconds")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """
    Find the Reddit post or comment matching the given screenshot fields.

    Prints the result as JSON. Exits 0 when a match was found, 1 otherwise.
    """
    log_level = "DEBUG" if verbose else loglevel
    setup_logging(log_level)

    if payload is not None:
        try:
            query = ExtractionQuery.from_vision_payload(payload.read_text(encoding="utf-8"))
        except (OSError, QueryParseError) as e:
            typer.echo(f"Could not read query from {payload}: {e}", err=True)
            raise typer.Exit(code=EXIT_BAD_INPUT)
    else:
        query = ExtractionQuery(
            subreddit=subreddit,
            username=username,
            title=title,
            body_snippet=body,
            confidence=confidence,
        )

    if not query.is_searchable():
        typer.echo("Provide at least one of --title, --subreddit or --username", err=True)
        raise typer.Exit(code=EXIT_BAD_INPUT)

    app_config = load_config(config)

    try:
        result = asyncio.run(run_resolve(app_config, query, timeout))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(EXIT_NOT_FOUND)
    except Exception as e:
        logger.critical(f"Unhandled exception: {str(e)}", exc_info=True)
        sys.exit(EXIT_NOT_FOUND)

    typer.echo(json.dumps(result.to_dict(), indent=2))
    raise typer.Exit(code=EXIT_FOUND if isinstance(result, Match) else EXIT_NOT_FOUND)


@app.command("check-config")
def check_config(
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config/config.yaml",
) -> None:
    """Load the configuration and report any validation errors."""
    app_config = load_config(config)
    mode = "OAuth client credentials" if app_config.is_authenticated else "unauthenticated"
    typer.echo(f"Configuration OK ({mode})")


def main() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    main()
