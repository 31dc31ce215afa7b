"""Basic project scaffolding tests."""

import importlib


def test_package_importable() -> None:
    """Verify the top-level package is importable."""
    import salvo  # noqa: F401  (import used to ensure availability)

    assert salvo is not None


def test_submodules_exist() -> None:
    """All primary submodules should be importable."""
    modules = [
        "salvo.engine.location",
        "salvo.engine.ship",
        "salvo.engine.grid",
        "salvo.engine.game",
        "salvo.engine.instrumented_game",
        "salvo.ai",
        "salvo.telemetry",
        "salvo.config",
        "salvo.errors",
        "salvo.cli",
    ]

    for module in modules:
        assert importlib.import_module(module) is not None
