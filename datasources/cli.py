"""CLI entrypoint for the ArcGIS map-service datasource."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from datasources.arcgis.datasource import ArcGISDatasource
from datasources.common.config_loader import load_config
from datasources.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS, EXIT_UPSTREAM_FAIL
from datasources.common.errors import (
    DataDownloadError,
    DatasourceError,
    ResponseError,
    UnsupportedVersionError,
)
from datasources.common.fs import dump_json, write_json
from datasources.common.http import HttpClient
from datasources.common.ids import generate_run_id
from datasources.common.logging import build_logger, log_event

UPSTREAM_ERRORS = (DataDownloadError, ResponseError, UnsupportedVersionError)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("url")
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--output", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def execute_command(command: str, url: str, datasource: ArcGISDatasource) -> dict:
    resource = datasource.get_resource_metadata(url)
    payload = {
        "resource": resource.to_dict(),
        "metadata": datasource.metadata.to_dict(),
    }
    if command == "fetch":
        features = datasource.get_resource(url, datasource.metadata)
        payload["row_count"] = len(features)
        payload["features"] = [feature.to_dict() for feature in features]
    elif command != "metadata":
        raise ValueError(f"Unknown command: {command}")
    return payload


def emit(payload: dict, output: str | None) -> None:
    if output is None:
        sys.stdout.write(dump_json(payload))
    else:
        write_json(Path(output), payload)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, log_dir=log_dir, level=args.log_level)
    bundle = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)

    log_event(logger, "command start", run_id=run_id, operation=args.command, event="COMMAND_START", status="ok")
    with HttpClient(config=bundle.http, retry=bundle.retry) as client:
        datasource = ArcGISDatasource(client, logger=logger)
        try:
            payload = execute_command(args.command, args.url, datasource)
        except DatasourceError as exc:
            log_event(
                logger,
                f"command failed: {exc}",
                run_id=run_id,
                operation=args.command,
                event="COMMAND_FAIL",
                status="error",
                error_code=exc.error_code,
            )
            if isinstance(exc, UPSTREAM_ERRORS):
                return EXIT_UPSTREAM_FAIL
            return EXIT_HARD_FAIL

    emit(payload, args.output)
    log_event(
        logger,
        "command end",
        run_id=run_id,
        operation=args.command,
        event="COMMAND_END",
        status="ok",
        rows_out=payload.get("row_count"),
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except DatasourceError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
