"""Textual front-end for the discovery engine."""

from __future__ import annotations

from pathlib import Path


def run_tui(config_path: Path | None = None, initial_query: str = "") -> None:
    """Build an engine from configuration and run the TUI.

    Imports are deferred so ``inkedin --help`` stays fast.

    Args:
        config_path: JSON config file; defaults to ``config/discovery_config.json``.
        initial_query: Discovery URL query string to start from.
    """
    from inkedin.config import load_config
    from inkedin.engine.discovery import DiscoveryEngine
    from inkedin.telemetry import configure_file_logging
    from inkedin.tui.app import DiscoveryApp

    config = load_config(config_path)
    configure_file_logging(config.log_dir)
    engine = DiscoveryEngine.from_config(config)
    DiscoveryApp(engine, initial_query=initial_query).run()
