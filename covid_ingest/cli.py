"""CLI entrypoint for the daily case-report loader."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from covid_ingest.common.config_loader import Settings, load_env_file, resolve_settings
from covid_ingest.common.constants import EXIT_CONFIG_ERROR, EXIT_HARD_FAIL, EXIT_SUCCESS, RESUME_STRATEGIES
from covid_ingest.common.errors import ConfigError, PipelineError
from covid_ingest.common.http import HttpClient
from covid_ingest.common.ids import generate_run_id
from covid_ingest.common.logging import build_logger, log_event
from covid_ingest.common.models import RunContext
from covid_ingest.geocode.google_maps import GoogleMapsGeocoder
from covid_ingest.pipeline.runner import run_pipeline
from covid_ingest.sinks.influx import InfluxSink


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=__doc__,
        epilog="Flags override the DATA_DIR, INFLUX_* and MAPS_TOKEN environment variables.",
    )
    parser.add_argument("--dir", default=None, help="Path to where the .csv data files live")
    parser.add_argument("--url", default=None, help="URL of the InfluxDB server, including port")
    parser.add_argument("--token", default=None, help="InfluxDB token")
    parser.add_argument("--organization", default=None, help="InfluxDB organization")
    parser.add_argument("--bucket", default=None, help="InfluxDB bucket")
    parser.add_argument("--measurement", default=None, help="Measurement to write rows to")
    parser.add_argument("--gtoken", default=None, help="Google Maps API token, enables geocoding of rows without coordinates")
    parser.add_argument("--config", default=None, help="Optional YAML settings file")
    parser.add_argument("--checkpoint-file", default=None)
    parser.add_argument("--resume-by", default=None, choices=list(RESUME_STRATEGIES))
    parser.add_argument("--suffix", default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_sink(settings: Settings) -> InfluxSink:
    return InfluxSink(settings.influx_url, settings.influx_token, settings.influx_org, settings.influx_bucket)


def build_geocoder(settings: Settings, client: HttpClient) -> GoogleMapsGeocoder | None:
    if not settings.geocoding_enabled:
        return None
    return GoogleMapsGeocoder(
        settings.maps_token,
        client,
        endpoint=settings.geocode_endpoint,
        language=settings.geocode_language,
    )


def _print_usage_error(exc: ConfigError) -> None:
    print(f"ERROR: {exc}\n", file=sys.stderr)
    build_parser().print_help(sys.stderr)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    load_env_file()
    try:
        settings = resolve_settings(vars(args), settings_file=Path(args.config) if args.config else None)
    except ConfigError as exc:
        _print_usage_error(exc)
        return EXIT_CONFIG_ERROR

    logger = build_logger(run_id, log_dir=settings.log_dir, level=settings.log_level)
    ctx = RunContext(run_id=run_id, logger=logger)
    log_event(logger, "run start", run_id=run_id, stage="run", event="RUN_START", status="ok", details=settings.describe())

    try:
        with HttpClient(rate_per_sec=settings.geocode_rate_per_sec) as http_client, build_sink(settings) as sink:
            geocoder = build_geocoder(settings, http_client)
            run_pipeline(settings, ctx, sink, geocoder)
    except PipelineError as exc:
        log_event(
            logger,
            f"run failed: {exc}",
            level="error",
            run_id=run_id,
            stage="run",
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
            duration_ms=int(ctx.elapsed_seconds() * 1000),
        )
        if isinstance(exc, ConfigError):
            _print_usage_error(exc)
            return EXIT_CONFIG_ERROR
        return EXIT_HARD_FAIL
    except Exception as exc:
        log_event(
            logger,
            f"unexpected failure: {exc!r}",
            level="error",
            run_id=run_id,
            stage="run",
            event="RUN_FAIL",
            status="error",
            error_code="UNEXPECTED_ERROR",
        )
        return EXIT_HARD_FAIL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
