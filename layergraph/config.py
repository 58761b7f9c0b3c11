from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .interaction.styles import DEFAULT_LAYER_COLORS
from .models import LAYER_NAMES
from .persistence import DEFAULT_STATE_DIR

CONFIG_FILENAME = "layergraph.toml"


@dataclass
class LayerConfig:
    name: str
    color: str


@dataclass
class Config:
    width: float = 1400.0
    height: float = 900.0
    seed: int | None = None
    max_ticks: int | None = None
    state_dir: Path = Path(DEFAULT_STATE_DIR)
    data_dir: Path | None = None
    highlight_links: tuple[str, ...] = ()
    layers: dict[int, LayerConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for layer, name in LAYER_NAMES.items():
            if layer not in self.layers:
                self.layers[layer] = LayerConfig(name=name, color=DEFAULT_LAYER_COLORS.get(layer, ""))

    @property
    def layer_colors(self) -> dict[int, str]:
        return {layer: lc.color for layer, lc in self.layers.items() if lc.color}


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _positive(value: Any, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number") from None
    if number <= 0:
        raise ValueError(f"{key} must be positive")
    return number


def _optional_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def _resolve(base: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base / path


def load_config(path: Path) -> Config:
    """
    Load settings from TOML.

    Relative paths are resolved against the file's directory. Raises
    ValueError on values of the wrong type.
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: {e}") from e
    base = path.parent

    canvas = _coerce_dict(data.get("canvas"))
    layout = _coerce_dict(data.get("layout"))
    storage = _coerce_dict(data.get("storage"))
    source = _coerce_dict(data.get("data"))
    highlight = _coerce_dict(data.get("highlight"))

    links = highlight.get("links", [])
    if not isinstance(links, list) or not all(isinstance(l, str) for l in links):
        raise ValueError("highlight.links must be a list of link ids")

    layers: dict[int, LayerConfig] = {}
    for key, raw in _coerce_dict(data.get("layers")).items():
        try:
            layer = int(key)
        except ValueError:
            raise ValueError(f"layers.{key}: layer keys must be integers") from None
        raw = _coerce_dict(raw)
        name = str(raw.get("name", LAYER_NAMES.get(layer, f"layer {layer}"))).strip()
        color = str(raw.get("color", DEFAULT_LAYER_COLORS.get(layer, ""))).strip()
        layers[layer] = LayerConfig(name=name, color=color)

    max_ticks = _optional_int(layout.get("max_ticks"), "layout.max_ticks")
    if max_ticks is not None and max_ticks <= 0:
        raise ValueError("layout.max_ticks must be positive")

    return Config(
        width=_positive(canvas.get("width", 1400), "canvas.width"),
        height=_positive(canvas.get("height", 900), "canvas.height"),
        seed=_optional_int(layout.get("seed"), "layout.seed"),
        max_ticks=max_ticks,
        state_dir=_resolve(base, storage.get("state_dir", DEFAULT_STATE_DIR)),
        data_dir=_resolve(base, source["dir"]) if "dir" in source else None,
        highlight_links=tuple(links),
        layers=layers,
    )


def find_config(start: Path) -> Config:
    """Load ``layergraph.toml`` from ``start`` if present, else defaults."""
    path = start / CONFIG_FILENAME
    if not path.exists():
        return Config()
    return load_config(path)
