import json
from pathlib import Path

import pytest

from detect_marker.config import RunConfig, RunSummary, load_config


def test_config_defaults():
    cfg = RunConfig()
    assert cfg.video_source == 0
    assert cfg.dictionary == 8
    assert cfg.calibration_path == "calibration_params.yml"
    assert cfg.marker_length_m == pytest.approx(0.2)
    assert cfg.wait_ms == 10
    assert cfg.display is True
    assert cfg.interactive is False
    assert cfg.print_transforms is True
    assert cfg.world_positions is None


def test_load_config_json(tmp_path: Path):
    cfg_path = tmp_path / "run.json"
    cfg_path.write_text(
        json.dumps(
            {
                "video_source": "clip.mp4",
                "dictionary": "4x4_50",
                "marker_length_m": 0.05,
                "target_ids": [1, 2],
                "world_positions": {"3": [1, 2, 3]},
                "default_world_position": "0 0 1",
                "max_frames": "20",
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(cfg_path)
    assert cfg.video_source == "clip.mp4"
    assert cfg.dictionary == "4x4_50"
    assert cfg.marker_length_m == pytest.approx(0.05)
    assert cfg.target_ids == [1, 2]
    assert cfg.world_positions == {3: [1.0, 2.0, 3.0]}
    assert cfg.default_world_position == [0.0, 0.0, 1.0]
    assert cfg.max_frames == 20
    assert cfg.log_level == "DEBUG"

    cfg.apply_overrides(video_source=2, dictionary=None)
    assert cfg.video_source == 2
    assert cfg.dictionary == "4x4_50"


def test_load_config_yaml(tmp_path: Path):
    cfg_path = tmp_path / "run.yml"
    cfg_path.write_text(
        "dictionary: 10\n"
        "display: false\n"
        "print_transforms: false\n"
        "world_positions:\n"
        "  7: [0.5, 0.0, 1.5]\n"
        "duration_sec: 2\n",
        encoding="utf-8",
    )

    cfg = load_config(cfg_path)
    assert cfg.dictionary == 10
    assert cfg.display is False
    assert cfg.print_transforms is False
    assert cfg.world_positions == {7: [0.5, 0.0, 1.5]}
    assert cfg.duration_sec == pytest.approx(2.0)


def test_load_config_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "raw",
    [
        [1, 2, 3],
        {"world_positions": [1, 2, 3]},
        {"world_positions": {"1": [1, 2]}},
        {"default_world_position": "1 2"},
        {"target_ids": "all"},
    ],
)
def test_load_config_rejects_bad_content(tmp_path: Path, raw):
    cfg_path = tmp_path / "bad.json"
    cfg_path.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(cfg_path)


def test_run_summary_is_simple_container():
    summary = RunSummary(10, 4, 3, 1, 8.2, "key")
    assert summary.frames_processed == 10
    assert summary.frames_with_markers == 4
    assert summary.stopped_by == "key"
    assert RunConfig().as_dict()["wait_ms"] == 10
