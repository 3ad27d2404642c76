from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Optional


@dataclass
class RunConfig:
    video_source: int | str = 0
    dictionary: int | str = 8  # DICT_6X6_50
    calibration_path: str = "calibration_params.yml"
    marker_length_m: float = 0.2
    wait_ms: int = 10
    display: bool = True
    interactive: bool = False
    print_transforms: bool = True
    max_frames: Optional[int] = None
    duration_sec: Optional[float] = None
    target_ids: Optional[list[int]] = None
    world_positions: Optional[dict[int, list[float]]] = None
    default_world_position: Optional[list[float]] = None
    log_level: str = "INFO"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "RunConfig":
        for key, value in kwargs.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)
        return self


@dataclass
class RunSummary:
    frames_processed: int
    frames_with_markers: int
    compositions: int
    errors: int
    avg_fps: float
    stopped_by: str


def _normalize_target_ids(value: Any) -> Optional[list[int]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return [int(v) for v in value]
    if isinstance(value, (int, float)):
        return [int(value)]
    raise ValueError("target_ids must be an int or a list of ints")


def _normalize_position(value: Any, what: str) -> list[float]:
    if isinstance(value, str):
        value = value.replace(",", " ").split()
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"{what} must be three numbers [x, y, z]")
    return [float(v) for v in value]


def _normalize_world_positions(value: Any) -> Optional[dict[int, list[float]]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError("world_positions must be a mapping of marker_id -> [x, y, z]")
    return {
        int(k): _normalize_position(v, f"world_positions[{k}]")
        for k, v in value.items()
    }


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        import yaml  # type: ignore
    except Exception as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "YAML config requested but PyYAML is not installed. "
            "Install with: pip install pyyaml"
        ) from exc
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def load_config(path: str | Path) -> RunConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = RunConfig()
    cfg.video_source = raw.get("video_source", cfg.video_source)
    cfg.dictionary = raw.get("dictionary", cfg.dictionary)
    cfg.calibration_path = str(raw.get("calibration_path", cfg.calibration_path))
    cfg.marker_length_m = float(raw.get("marker_length_m", cfg.marker_length_m))
    cfg.wait_ms = int(raw.get("wait_ms", cfg.wait_ms))
    cfg.display = bool(raw.get("display", cfg.display))
    cfg.interactive = bool(raw.get("interactive", cfg.interactive))
    cfg.print_transforms = bool(raw.get("print_transforms", cfg.print_transforms))
    cfg.max_frames = raw.get("max_frames", cfg.max_frames)
    if cfg.max_frames is not None:
        cfg.max_frames = int(cfg.max_frames)
    cfg.duration_sec = raw.get("duration_sec", cfg.duration_sec)
    if cfg.duration_sec is not None:
        cfg.duration_sec = float(cfg.duration_sec)
    cfg.target_ids = _normalize_target_ids(raw.get("target_ids", cfg.target_ids))
    cfg.world_positions = _normalize_world_positions(raw.get("world_positions"))
    default_pos = raw.get("default_world_position")
    if default_pos is not None:
        cfg.default_world_position = _normalize_position(default_pos, "default_world_position")
    cfg.log_level = str(raw.get("log_level", cfg.log_level)).upper()

    return cfg
