"""CLI entrypoint for the station geodata pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from stations.common.config_loader import load_config, read_secret
from stations.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS
from stations.common.errors import ConfigError, PipelineError
from stations.common.logging import build_logger, log_event
from stations.common.time_utils import generate_run_id
from stations.pipeline.driver import build_geocoder, run_regen
from stations.pipeline.mac import regenerate_mac_codes
from stations.pipeline.rail import regenerate_rail_csv
from stations.pipeline.reports import write_run_summary
from stations.sources.sabre import SabreListsClient


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=__doc__,
        epilog="regen: rebuild the stations JSON; rail: re-geocode the rail CSV; mac: rebuild multi-airport city codes",
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default=".")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def build_provider(cfg: dict) -> SabreListsClient:
    provider_cfg = cfg["multi_airport_city"].get("provider")
    if not provider_cfg:
        raise ConfigError("multi_airport_city.provider is not configured")
    return SabreListsClient(
        provider_cfg["base_url"],
        read_secret(provider_cfg["client_id_env"]),
        read_secret(provider_cfg["client_secret_env"]),
    )


def execute_command(command: str, cfg: dict, data_dir: Path, run_id: str, logger: logging.Logger) -> None:
    if command == "regen":
        geocoder = build_geocoder(cfg, logger)
        try:
            result = run_regen(cfg, data_dir, run_id=run_id, logger=logger, geocoder=geocoder)
        finally:
            geocoder.close()
        write_run_summary(data_dir, run_id=run_id, result=result)
    elif command == "rail":
        geocoder = build_geocoder(cfg, logger)
        try:
            regenerate_rail_csv(cfg, data_dir, geocoder, run_id=run_id, logger=logger)
        finally:
            geocoder.close()
    elif command == "mac":
        provider = build_provider(cfg)
        try:
            regenerate_mac_codes(cfg, data_dir, provider, logger=logger)
        finally:
            provider.close()
    else:
        raise ValueError(f"Unknown command: {command}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    log_event(logger, "command start", run_id=run_id, stage=args.command, event="COMMAND_START", status="ok")
    try:
        cfg = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        execute_command(args.command, cfg, data_dir, run_id, logger)
    except PipelineError as exc:
        log_event(
            logger,
            f"{args.command} failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception as exc:
        logger.exception(
            f"unexpected failure: {exc}",
            extra={"run_id": run_id, "stage": args.command, "event": "COMMAND_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
        )
        return EXIT_HARD_FAIL
    log_event(logger, "command end", run_id=run_id, stage=args.command, event="COMMAND_END", status="ok")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
