from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List, Optional

import yaml

from .collector import Collector, Poller
from .config.config_parser import (
    build_registry,
    load_collector_settings,
    load_dispatch_config,
    parse_config_file,
)
from .config.logging_config import init_logging
from .dispatch.registry import load_dispatcher
from .submit import Submitter


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point for the PowerDNS statistics collector.
    Parses arguments, loads configuration, builds targets and the dispatch
    backend, and polls until told to stop.

    Args:
        argv: Command-line arguments.

    Returns:
        An exit code: 0 on clean shutdown, 1 on configuration/startup errors
        (or, with --once, when any target failed), 2 when terminated by
        SIGTERM/SIGINT.

    Example use:
        CLI:
            pdnsstats --config config.yaml
            pdnsstats --config config.yaml --once -v SOCK=/tmp/pdns.sock
    """
    parser = argparse.ArgumentParser(
        description="Collect PowerDNS server and recursor statistics"
    )
    parser.add_argument("--config", default="config.yaml", help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (overrides environment and config file)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single collection cycle and exit",
    )
    args = parser.parse_args(argv)

    try:
        cfg = parse_config_file(args.config, cli_vars=args.var)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        print(str(exc))
        return 1

    init_logging(cfg.get("logging"))
    logger = logging.getLogger("pdnsstats.main")
    logger.info("Loaded config from %s", args.config)

    try:
        settings = load_collector_settings(cfg)
        dispatcher = load_dispatcher(load_dispatch_config(cfg))
    except Exception as e:
        logger.error("Failed to initialize: %s", e)
        return 1

    registry = build_registry(cfg)
    if not len(registry):
        logger.warning("No valid targets configured; nothing will be collected")

    submitter = Submitter(dispatcher)
    collector = Collector(registry, submitter, settings)

    if args.once:
        try:
            results = collector.run_cycle()
        finally:
            registry.clear()
            dispatcher.close()
        return 0 if all(results.values()) else 1

    shutdown_event = threading.Event()
    exit_code = 0
    poller = Poller(collector)

    def _request_shutdown(reason: str, code: int) -> None:
        nonlocal exit_code
        if shutdown_event.is_set():
            return
        exit_code = code
        shutdown_event.set()
        logger.info("Received %s, initiating shutdown (exit code=%d)", reason, code)

    def _sigusr1_handler(_signum, _frame):
        logger.info("Received SIGUSR1, collecting now")
        poller.trigger()

    def _sighup_handler(_signum, _frame):
        _request_shutdown("SIGHUP", 0)

    def _sigterm_handler(_signum, _frame):
        _request_shutdown("SIGTERM", 2)

    def _sigint_handler(_signum, _frame):
        _request_shutdown("SIGINT", 2)

    for name, handler in (
        ("SIGUSR1", _sigusr1_handler),
        ("SIGHUP", _sighup_handler),
        ("SIGTERM", _sigterm_handler),
        ("SIGINT", _sigint_handler),
    ):
        try:
            signal.signal(getattr(signal, name), handler)
            logger.debug("Installed %s handler", name)
        except (AttributeError, ValueError, OSError):
            logger.warning("Could not install %s handler on this platform", name)

    poller.start()
    logger.info(
        "Startup Completed: %d targets, interval %.1fs", len(registry), poller.interval_seconds
    )

    try:
        while not shutdown_event.is_set():
            if not poller.is_alive():
                logger.error("Poller thread exited unexpectedly")
                exit_code = 1
                break
            shutdown_event.wait(1.0)
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")
        shutdown_event.set()
    finally:
        logger.info("Stopping poller")
        poller.stop()
        registry.clear()
        dispatcher.close()

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
