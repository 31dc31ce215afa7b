"""Telemetry instrumentation unit tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from salvo.ai.difficulty import AIOption
from salvo.ai.instrumented_engine import InstrumentedTargetingEngine
from salvo.ai.targeting import TargetingEngine
from salvo.config import GameConfig
from salvo.engine.game import BattleshipGame, GamePhase, Player
from salvo.engine.grid import AttackOutcome, AttackResult, EnemyView, SeaGrid
from salvo.engine.instrumented_game import InstrumentedBattleshipGame
from salvo.errors import AlreadyShotError
from salvo.telemetry import config as telemetry_config_module
from salvo.telemetry import logger as logger_module
from salvo.telemetry import metrics as metrics_module
from salvo.telemetry import tracer as tracer_module
from salvo.telemetry.config import TelemetryConfig


class DummySpan:
    def __init__(self, names: list[str], span_name: str) -> None:
        self._names = names
        self._names.append(span_name)
        self.exceptions: list[BaseException] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def set_attribute(self, *_):
        pass

    def record_exception(self, exc: BaseException) -> None:
        self.exceptions.append(exc)


class DummyTracer:
    def __init__(self) -> None:
        self.span_names: list[str] = []

    def start_as_current_span(self, name: str):
        return DummySpan(self.span_names, name)


def reset_singletons() -> None:
    tracer_module._TRACERS.clear()
    tracer_module._TRACER_PROVIDER = None
    metrics_module._METER = None
    metrics_module._METER_PROVIDER = None
    metrics_module._INSTRUMENTS = {}
    logger_module._LOGGER = None


def test_lazy_init_tracer_and_meter(monkeypatch: pytest.MonkeyPatch) -> None:
    reset_singletons()
    assert tracer_module.get_tracer("salvo.test") is tracer_module.get_tracer("salvo.test")

    provider_instance = MagicMock()
    provider_instance.get_tracer.return_value = MagicMock()
    monkeypatch.setattr(tracer_module, "TracerProvider", MagicMock(return_value=provider_instance))
    monkeypatch.setattr(tracer_module, "OTLPSpanExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(tracer_module.trace, "set_tracer_provider", MagicMock())
    tracer = tracer_module.init_tracing(
        TelemetryConfig(enable_tracing=True, otlp_traces_endpoint="http://example")
    )
    assert tracer is provider_instance.get_tracer.return_value
    assert tracer_module.get_tracer("salvo") is tracer

    meter_provider = MagicMock()
    meter_provider.get_meter.return_value = MagicMock()
    monkeypatch.setattr(metrics_module, "MeterProvider", MagicMock(return_value=meter_provider))
    monkeypatch.setattr(metrics_module, "OTLPMetricExporter", MagicMock(return_value=MagicMock()))
    monkeypatch.setattr(metrics_module.otel_metrics, "set_meter_provider", MagicMock())
    metrics_module.init_metrics(
        TelemetryConfig(enable_metrics=True, otlp_metrics_endpoint="http://example")
    )
    assert metrics_module._METER is meter_provider.get_meter.return_value
    reset_singletons()


def test_record_game_metric_reuses_counter(monkeypatch: pytest.MonkeyPatch) -> None:
    meter = MagicMock()
    monkeypatch.setattr(metrics_module, "_INSTRUMENTS", {})
    monkeypatch.setattr(metrics_module, "get_meter", lambda *_: meter)

    metrics_module.record_game_metric("salvo_test_total", 1, {"a": "b"})
    metrics_module.record_game_metric("salvo_test_total", 2)
    meter.create_counter.assert_called_once_with("salvo_test_total")
    counter = meter.create_counter.return_value
    assert counter.add.call_count == 2


def test_get_logger_is_cached() -> None:
    reset_singletons()
    logger = logger_module.get_logger("salvo.test")
    assert logger_module.get_logger("other") is logger
    reset_singletons()


def test_init_telemetry_noop(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    telemetry_config_module.init_telemetry(TelemetryConfig())
    assert calls == []


def test_init_telemetry_respects_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    monkeypatch.setattr(tracer_module, "init_tracing", lambda cfg: calls.append("tr"))
    monkeypatch.setattr(metrics_module, "init_metrics", lambda cfg: calls.append("me"))
    monkeypatch.setattr(logger_module, "init_logging", lambda cfg: calls.append("lo"))

    telemetry_config_module.init_telemetry(TelemetryConfig(enable_tracing=True, enable_logging=True))
    assert calls == ["tr", "lo"]


def test_from_env_builds_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
        "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
        "SALVO_ENABLE_LOGGING",
        "OTEL_SERVICE_NAME",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://collector:4317/")
    monkeypatch.setenv("OTEL_RESOURCE_ATTRIBUTES", "deployment=test,broken")
    monkeypatch.setenv("SALVO_LOG_LEVEL", "debug")

    config = TelemetryConfig.from_env()
    assert config.otlp_traces_endpoint == "http://collector:4317/v1/traces"
    assert config.otlp_logs_endpoint == "http://collector:4317/v1/logs"
    assert config.enable_tracing and config.enable_metrics and config.enable_logging
    assert config.resource_attributes == {"deployment": "test"}
    assert config.log_level == "DEBUG"
    assert config.resource_dict()["service.name"] == "salvo"


def test_from_env_flags_without_endpoints(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
        "OTEL_EXPORTER_OTLP_METRICS_ENDPOINT",
        "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
        "OTEL_TRACES_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SALVO_ENABLE_TRACING", "yes")
    monkeypatch.setenv("SALVO_ENABLE_METRICS", "off")

    config = TelemetryConfig.from_env()
    assert config.enable_tracing is True
    assert config.enable_metrics is False
    assert config.otlp_traces_endpoint is None


def test_load_telemetry_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    telemetry_config_module.load_telemetry_config.cache_clear()
    calls = {"count": 0}

    def fake_from_env(cls, **overrides):
        calls["count"] += 1
        return TelemetryConfig(enable_tracing=True)

    monkeypatch.setattr(TelemetryConfig, "from_env", classmethod(fake_from_env))

    first = telemetry_config_module.load_telemetry_config()
    second = telemetry_config_module.load_telemetry_config()
    assert first is second
    assert calls["count"] == 1
    telemetry_config_module.load_telemetry_config.cache_clear()


def test_instrumented_game_emits_spans(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metrics_calls: list[tuple[str, float, dict | None]] = []
    logger = MagicMock()

    monkeypatch.setattr("salvo.engine.instrumented_game.get_tracer", lambda *_: tracer)
    monkeypatch.setattr("salvo.engine.instrumented_game.get_logger", lambda *_: logger)
    monkeypatch.setattr(
        "salvo.engine.instrumented_game.record_game_metric",
        lambda name, value, attrs=None: metrics_calls.append((name, value, attrs)),
    )
    monkeypatch.setattr(BattleshipGame, "setup_random", lambda self: None)

    def fake_shoot(self, row, column, keep_turn=False):
        self.phase = GamePhase.FINISHED
        self.winner = self.current_player
        return AttackResult(AttackOutcome.GAME_OVER, row, column)

    monkeypatch.setattr(BattleshipGame, "shoot", fake_shoot)

    game = InstrumentedBattleshipGame(GameConfig(seed=0))
    game.setup_random()
    assert "salvo.engine.game" in tracer.span_names
    assert "salvo.engine.setup_random" in tracer.span_names

    tracer.span_names.clear()
    metrics_calls.clear()
    game.shoot(0, 0)
    assert "salvo.engine.shoot" in tracer.span_names
    assert "salvo.engine.game_complete" in tracer.span_names
    metric_names = {name for name, _, _ in metrics_calls}
    assert "salvo_shots_total" in metric_names
    assert "salvo_game_completed_total" in metric_names
    assert game.winner is Player.HUMAN


def test_instrumented_game_records_invalid_shots(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    metric_names: list[str] = []
    monkeypatch.setattr("salvo.engine.instrumented_game.get_tracer", lambda *_: tracer)
    monkeypatch.setattr("salvo.engine.instrumented_game.get_logger", lambda *_: MagicMock())
    monkeypatch.setattr(
        "salvo.engine.instrumented_game.record_game_metric",
        lambda name, value, attrs=None: metric_names.append(name),
    )

    game = InstrumentedBattleshipGame()
    with pytest.raises(RuntimeError):
        game.shoot(0, 0)
    assert "salvo_game_invalid_shots_total" in metric_names


def test_instrumented_engine_records_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    tracer = DummyTracer()
    logger = MagicMock()
    metric_calls: list[str] = []

    monkeypatch.setattr("salvo.ai.instrumented_engine.get_tracer", lambda *_: tracer)
    monkeypatch.setattr("salvo.ai.instrumented_engine.get_logger", lambda *_: logger)
    monkeypatch.setattr(
        "salvo.ai.instrumented_engine.record_game_metric",
        lambda name, value, attrs=None: metric_calls.append(name),
    )

    grid = SeaGrid()
    engine = InstrumentedTargetingEngine(EnemyView(grid), AIOption.HARD)
    location = engine.choose_shot()
    assert "salvo.ai.choose_shot" in tracer.span_names
    assert "salvo_ai_choices_total" in metric_calls
    assert "salvo_ai_choice_latency_ms" in metric_calls

    result = grid.attack(location.row, location.column)
    engine.on_shot_resolved(result.row, result.column, result.outcome)
    assert "salvo.ai.on_shot_resolved" in tracer.span_names
    assert "salvo_ai_outcomes_total" in metric_calls

    with pytest.raises(AlreadyShotError):
        engine.on_shot_resolved(result.row, result.column, AttackOutcome.ALREADY_SHOT)
    assert "salvo_ai_consistency_errors_total" in metric_calls


def test_game_accepts_instrumented_engine_factory() -> None:
    game = BattleshipGame(GameConfig(difficulty=AIOption.INSANE), engine_factory=InstrumentedTargetingEngine)
    assert isinstance(game.engine, InstrumentedTargetingEngine)
    assert isinstance(game.engine, TargetingEngine)
    assert game.engine.policy.miss_tolerance == 1
