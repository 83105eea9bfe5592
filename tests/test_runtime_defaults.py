from src.core.runtime_defaults import (
    ENV_AREA_WEIGHT,
    ENV_FILL_HOLES,
    ENV_ISLAND_MARGIN,
    ENV_PREVIEW_RESOLUTION,
    ENV_PROJECTION_LIMIT,
    ENV_REMOVE_DOUBLES,
    load_runtime_defaults,
)
from src.core.uv_mapper import UnwrapOptions


def _clear_runtime_env(monkeypatch):
    for key in (
        ENV_ISLAND_MARGIN,
        ENV_PROJECTION_LIMIT,
        ENV_AREA_WEIGHT,
        ENV_REMOVE_DOUBLES,
        ENV_FILL_HOLES,
        ENV_PREVIEW_RESOLUTION,
    ):
        monkeypatch.delenv(key, raising=False)


def test_runtime_defaults_without_env(monkeypatch):
    _clear_runtime_env(monkeypatch)
    defaults = load_runtime_defaults()

    assert defaults.island_margin == 0.0
    assert defaults.projection_limit == 89.0
    assert defaults.area_weight == 0.0
    assert defaults.remove_doubles is True
    assert defaults.fill_holes is False
    assert defaults.preview_resolution == 1024


def test_runtime_defaults_with_valid_env(monkeypatch):
    _clear_runtime_env(monkeypatch)
    monkeypatch.setenv(ENV_ISLAND_MARGIN, "0.05")
    monkeypatch.setenv(ENV_PROJECTION_LIMIT, "66")
    monkeypatch.setenv(ENV_AREA_WEIGHT, "1")
    monkeypatch.setenv(ENV_REMOVE_DOUBLES, "off")
    monkeypatch.setenv(ENV_FILL_HOLES, "yes")
    monkeypatch.setenv(ENV_PREVIEW_RESOLUTION, "2048")

    defaults = load_runtime_defaults()

    assert defaults.island_margin == 0.05
    assert defaults.projection_limit == 66.0
    assert defaults.area_weight == 1.0
    assert defaults.remove_doubles is False
    assert defaults.fill_holes is True
    assert defaults.preview_resolution == 2048


def test_runtime_defaults_invalid_values_fallback(monkeypatch):
    _clear_runtime_env(monkeypatch)
    monkeypatch.setenv(ENV_ISLAND_MARGIN, "-0.5")
    monkeypatch.setenv(ENV_PROJECTION_LIMIT, "nan")
    monkeypatch.setenv(ENV_AREA_WEIGHT, "abc")
    monkeypatch.setenv(ENV_REMOVE_DOUBLES, "maybe")
    monkeypatch.setenv(ENV_FILL_HOLES, "")
    monkeypatch.setenv(ENV_PREVIEW_RESOLUTION, "8")

    defaults = load_runtime_defaults()

    assert defaults.island_margin == 0.0
    assert defaults.projection_limit == 89.0
    assert defaults.area_weight == 0.0
    assert defaults.remove_doubles is True
    assert defaults.fill_holes is False
    assert defaults.preview_resolution == 1024


def test_unwrap_options_from_defaults_accepts_overrides():
    opts = UnwrapOptions.from_defaults(island_margin=0.1, share_space=False)

    assert opts.island_margin == 0.1
    assert opts.share_space is False
