from __future__ import annotations

import argparse
import logging
import math
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import yaml

from code_router_updater.catalog_sync import fetch_openrouter_models
from code_router_updater.config import OPENROUTER_NAMESPACE, OpencodeConfigDocument
from code_router_updater.errors import ArgumentError, UpdaterError
from code_router_updater.model_merge import (
    build_model_mapping,
    merge_into_config,
    summarize_model_mapping,
)
from code_router_updater.model_utils import record_model_id
from code_router_updater.persistence import (
    JsonFileStore,
    expand_user_path,
    render_json,
)
from code_router_updater.settings import Settings, get_settings

if TYPE_CHECKING:
    import httpx

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    config_path: Path
    backup_path: Path
    source_url: str
    api_key: str | None
    timeout_seconds: float
    dry_run: bool = False


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def parse_timeout_ms(value: Any) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(
            f"--timeout-ms must be a positive number, got: {value}"
        ) from exc
    if not math.isfinite(parsed) or parsed <= 0:
        raise ArgumentError(f"--timeout-ms must be a positive number, got: {value}")
    return parsed


def resolve_run_options(args: argparse.Namespace) -> RunOptions:
    timeout_ms = parse_timeout_ms(args.timeout_ms)
    api_key = None if args.no_auth else (args.api_key or None)
    return RunOptions(
        config_path=expand_user_path(args.config),
        backup_path=expand_user_path(args.backup),
        source_url=args.source_url,
        api_key=api_key,
        timeout_seconds=timeout_ms / 1000.0,
        dry_run=bool(args.dry_run),
    )


def configure_logging(level: str) -> None:
    resolved = getattr(logging, str(level).upper(), None)
    if not isinstance(resolved, int):
        resolved = logging.WARNING
    logging.basicConfig(
        level=resolved,
        format="%(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def run_update(
    options: RunOptions,
    *,
    transport: httpx.BaseTransport | None = None,
) -> int:
    records = fetch_openrouter_models(
        source_url=options.source_url,
        api_key=options.api_key,
        timeout_seconds=options.timeout_seconds,
        transport=transport,
    )

    store = JsonFileStore(options.config_path)
    raw_config = store.read()
    if raw_config is not None and not isinstance(raw_config, dict):
        logger.warning(
            "config_not_object path=%s type=%s",
            options.config_path,
            type(raw_config).__name__,
        )
    document = OpencodeConfigDocument.from_raw(raw_config)

    previous = document.provider_models(OPENROUTER_NAMESPACE)
    models = build_model_mapping(records, previous)
    stats = summarize_model_mapping(previous, models)
    if not any(record_model_id(record) for record in records):
        logger.warning("models_list_empty url=%s", options.source_url)
    if stats.removed:
        logger.warning(
            "models_dropped count=%d ids=%s",
            len(stats.removed),
            ",".join(stats.removed),
        )

    merged = merge_into_config(document, models, namespace=OPENROUTER_NAMESPACE)

    backed_up = False
    if options.dry_run:
        sys.stdout.write(render_json(merged))
        print("Dry run: config not written.")
    else:
        backed_up = store.backup_if_exists(options.backup_path)
        store.write(merged)
        print(f"Wrote config: {options.config_path}")
        if backed_up:
            print(f"Backup: {options.backup_path}")
        else:
            print("Backup: not created (no existing config).")

    print(
        yaml.safe_dump(
            {
                **stats.as_dict(),
                "source_url": options.source_url,
                "config_path": str(options.config_path),
                "backup_path": str(options.backup_path),
                "backed_up": backed_up,
                "dry_run": options.dry_run,
            },
            sort_keys=False,
        ).rstrip()
    )
    return 0


def build_parser(settings: Settings | None = None) -> argparse.ArgumentParser:
    resolved = settings or get_settings()
    parser = _ArgumentParser(
        prog="code-router-updater",
        description=(
            "Fetch the OpenRouter model catalog and merge it into an opencode "
            "config under provider.openrouter.models."
        ),
    )
    parser.add_argument(
        "--config",
        default=resolved.code_router_config_path,
        help="Config output path (default: %(default)s).",
    )
    parser.add_argument(
        "--backup",
        default=resolved.code_router_backup_path,
        help="Backup path (default: %(default)s).",
    )
    parser.add_argument(
        "--api-key",
        dest="api_key",
        default=resolved.api_key,
        help="OpenRouter API key (default: $OPENROUTER_API_KEY).",
    )
    parser.add_argument(
        "--no-auth",
        action="store_true",
        help="Never send the Authorization header.",
    )
    parser.add_argument(
        "--timeout-ms",
        default=resolved.code_router_timeout_ms,
        help="Request timeout in milliseconds (default: %(default)s).",
    )
    parser.add_argument(
        "--source-url",
        default=resolved.openrouter_models_url,
        help="OpenRouter models API URL.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the merged config instead of writing it.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVEL_CHOICES,
        default=resolved.log_level.upper(),
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        options = resolve_run_options(args)
    except ArgumentError as exc:
        parser.error(str(exc))

    try:
        return run_update(options)
    except UpdaterError as exc:
        parser.exit(1, f"error: {exc}\n")
    except Exception as exc:
        logger.debug("update_failed_unexpectedly", exc_info=True)
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    raise SystemExit(main())
