"""Application bootstrap / CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

from .config import AppConfig, BridgeConfig, default_config_path, load_config
from .intents import INTENTS, run_intent
from .library import CleanupService
from .logging_utils import configure_logging
from .runtime import BridgeRuntime


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {raw}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return value


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="capturebridge")
    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to config YAML (default: capturebridge.yml or CAPTUREBRIDGE_CONFIG).",
    )
    sub = p.add_subparsers(dest="cmd", required=False)

    sub.add_parser("serve", help="Run the automation HTTP server (default).")

    capture = sub.add_parser("capture", help="Run one capture intent and print the result.")
    capture.add_argument("intent", choices=[intent.name for intent in INTENTS])
    capture.add_argument(
        "--return-type",
        default=None,
        help="filePath or text (default: the intent's own default).",
    )
    capture.add_argument("--timeout", type=_positive_float, default=None, help="Seconds to wait.")

    sub.add_parser("intents", help="List the available capture intents.")
    sub.add_parser("cleanup", help="Apply the capture library retention policy once.")
    sub.add_parser("print-config", help="Load config and print resolved values.")

    return p.parse_args(argv)


def _serve(config: AppConfig) -> int:
    import uvicorn

    from .api import create_app

    runtime = BridgeRuntime(config)
    runtime.start()
    try:
        uvicorn.run(
            create_app(runtime.bridge),
            host=config.api.host,
            port=config.api.port,
            log_level=config.logging.level.lower(),
        )
    finally:
        runtime.stop()
    return 0


async def _capture_once(config: AppConfig, intent: str, return_type: str | None) -> int:
    runtime = BridgeRuntime(config)
    runtime.start(cleanup=False)
    try:
        result = await run_intent(runtime.bridge, intent, return_type)
    finally:
        runtime.stop()
    if result.ok:
        print(result.value)
        return 0
    print(result.error, file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    args = _parse_args(argv)
    cmd = args.cmd or "serve"

    config_path = Path(args.config)
    config = load_config(config_path)
    configure_logging(config.logging.dir, config.logging.level)

    if cmd == "print-config":
        logger.info("Resolved config loaded from {}", config_path)
        print(json.dumps(config.model_dump(mode="json"), indent=2, sort_keys=True))
        return

    if cmd == "intents":
        for intent in INTENTS:
            print(f"{intent.name}\t{intent.default_return.value}\t{intent.title}")
        return

    if cmd == "cleanup":
        report = CleanupService(config).run_now()
        if report is None:
            print("library cleanup disabled")
            return
        print(
            f"deleted={report.deleted} freed_bytes={report.freed_bytes} "
            f"remaining={report.remaining}"
        )
        return

    if cmd == "capture":
        if args.timeout is not None:
            config = config.model_copy(update={"bridge": BridgeConfig(timeout_s=args.timeout)})
        raise SystemExit(asyncio.run(_capture_once(config, args.intent, args.return_type)))

    try:
        raise SystemExit(_serve(config))
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
