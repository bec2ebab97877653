"""Tests for configuration loading, credentials, file logging and spans."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from inkedin import config as config_mod
from inkedin.config import DiscoveryConfig, get_api_token, get_geocode_key, load_config
from inkedin.exceptions import InputValidationError
from inkedin.models import Coordinates, FallbackPolicy
from inkedin.telemetry import LOGGER_NAME, Telemetry, configure_file_logging


@pytest.fixture
def no_keyring(monkeypatch):
    monkeypatch.setattr(config_mod.keyring, "get_password", lambda service, key: None)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.json")
        assert config == DiscoveryConfig()
        assert config.per_page == 20
        assert config.location_fallback is FallbackPolicy.ANY_LOCATION

    def test_values_and_coercion(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "per_page": 30,
                    "location_fallback": "new_viewer",
                    "preferences_path": str(tmp_path / "prefs.json"),
                    "device_coordinates": "52.52,13.405",
                }
            )
        )
        config = load_config(path)
        assert config.per_page == 30
        assert config.location_fallback is FallbackPolicy.NEW_VIEWER
        assert config.preferences_path == tmp_path / "prefs.json"
        assert config.device_coordinates == Coordinates(52.52, 13.405)

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"colour": "red", "subject": "artists"}))
        with caplog.at_level(logging.WARNING, logger="inkedin.config"):
            config = load_config(path)
        assert config.subject == "artists"
        assert "colour" in caplog.text

    def test_bad_device_coordinates(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"device_coordinates": "north"}))
        with pytest.raises(InputValidationError):
            load_config(path)

    def test_unknown_fallback_policy(self):
        with pytest.raises(ValueError):
            DiscoveryConfig(location_fallback="sometimes")

    def test_sample_config_loads(self):
        sample = Path(__file__).parent.parent / "config" / "discovery_config.json"
        config = load_config(sample)
        assert config.promo_cadence == 6


class TestCredentials:
    def test_keyring_wins(self, monkeypatch):
        monkeypatch.setattr(config_mod.keyring, "get_password", lambda service, key: f"{key}-secret")
        monkeypatch.setenv("INKEDIN_API_TOKEN", "from-env")
        assert get_api_token() == "api_token-secret"

    def test_env_fallback(self, monkeypatch, no_keyring):
        monkeypatch.setenv("INKEDIN_GEOCODE_KEY", "geo-env")
        assert get_geocode_key() == "geo-env"

    def test_anonymous_token(self, monkeypatch, no_keyring):
        monkeypatch.delenv("INKEDIN_API_TOKEN", raising=False)
        assert get_api_token() is None

    def test_missing_geocode_key(self, monkeypatch, no_keyring):
        monkeypatch.delenv("INKEDIN_GEOCODE_KEY", raising=False)
        with pytest.raises(RuntimeError, match="set-geocode-key"):
            get_geocode_key()


@pytest.fixture
def log_file(tmp_path):
    """Attach the JSON-lines handler, yield a reader, then detach it."""
    logger = logging.getLogger(LOGGER_NAME)
    before = list(logger.handlers)
    level = logger.level
    path = configure_file_logging(str(tmp_path / "logs"))

    def read() -> list[dict]:
        for handler in logger.handlers:
            handler.flush()
        return [json.loads(line) for line in Path(path).read_text().splitlines()]

    yield path, read
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


class TestFileLogging:
    def test_writes_json_lines(self, log_file, tmp_path):
        path, read = log_file
        assert path is not None
        assert configure_file_logging(str(tmp_path / "logs")) is None

        logging.getLogger("inkedin.engine").info("hello %s", "world")
        record = read()[-1]
        assert record["msg"] == "hello world"
        assert record["logger"] == "inkedin.engine"
        assert record["trace"] == "0" * 32

    def test_module_loggers_carry_active_span(self, log_file):
        _, read = log_file
        telemetry, exporter = Telemetry.for_testing()
        with telemetry.span("discovery.fetch_page"):
            logging.getLogger("inkedin.search.paginator").debug("inside")
        (span,) = exporter.get_finished_spans()
        record = read()[-1]
        assert record["msg"] == "inside"
        assert record["trace"] == format(span.context.trace_id, "032x")
        assert record["span"] == format(span.context.span_id, "016x")

    def test_exceptions_serialized(self, log_file):
        _, read = log_file
        try:
            raise ValueError("bad page")
        except ValueError:
            logging.getLogger("inkedin.engine").exception("fetch crashed")
        record = read()[-1]
        assert "ValueError: bad page" in record["exc"]


class TestSpans:
    def test_seeded_attributes_skip_none(self):
        telemetry, exporter = Telemetry.for_testing()
        with telemetry.span("geo.resolve_text", {"geo.field": "location", "geo.query": None}) as span:
            span.set_attribute("geo.stale", False)
        (finished,) = exporter.get_finished_spans()
        assert dict(finished.attributes) == {"geo.field": "location", "geo.stale": False}

    def test_noop_spans_accept_calls(self):
        with Telemetry.noop().span("discovery.start", {"start.has_query": True}) as span:
            span.set_attribute("x", 1)
            span.record_exception(RuntimeError("ignored"))
