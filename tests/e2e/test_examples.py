"""Lay out every example document end to end through the CLI."""

import json
import math
from pathlib import Path

import pytest
from click.testing import CliRunner

from edsl_layout.__main__ import main
from edsl_layout.ir.graph import GROUP_PADDING
from edsl_layout.types import ContainerKind

EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples"

EXAMPLE_FILES = sorted(EXAMPLES_DIR.glob("*.json"))


def _box(entry: dict) -> tuple[float, float, float, float]:
    return entry["x"], entry["y"], entry["width"], entry["height"]


def _run(path: Path) -> dict:
    result = CliRunner().invoke(main, [str(path), "--no-cache"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.mark.parametrize("path", EXAMPLE_FILES, ids=[p.stem for p in EXAMPLE_FILES])
def test_example_lays_out(path: Path) -> None:
    out = _run(path)
    source = json.loads(path.read_text())
    assert [n["id"] for n in out["nodes"]] == [n["id"] for n in source["nodes"]]
    for node in out["nodes"]:
        assert all(math.isfinite(v) for v in _box(node))
        assert node["x"] >= -1e-6 and node["y"] >= -1e-6
    for edge in out["edges"]:
        assert edge["start"] is not None and edge["end"] is not None


@pytest.mark.parametrize("path", EXAMPLE_FILES, ids=[p.stem for p in EXAMPLE_FILES])
def test_example_containment(path: Path) -> None:
    out = _run(path)
    padding = out["config"].get("container_padding", 20.0)
    boxes = {n["id"]: _box(n) for n in out["nodes"]}
    for container in out["containers"]:
        if container["id"] is not None:
            boxes[container["id"]] = _box(container["bounds"])
    for container in out["containers"]:
        cx, cy, cw, ch = _box(container["bounds"])
        default = GROUP_PADDING.get(ContainerKind(container["kind"]), padding)
        pad = container["attrs"].get("padding", default)
        for child in container["children"]:
            x, y, w, h = boxes[child]
            assert x >= cx + pad - 1e-6 and y >= cy + pad - 1e-6
            assert x + w <= cx + cw - pad + 1e-6 and y + h <= cy + ch - pad + 1e-6


@pytest.mark.parametrize("path", EXAMPLE_FILES, ids=[p.stem for p in EXAMPLE_FILES])
def test_example_is_deterministic(path: Path) -> None:
    assert _run(path) == _run(path)


def test_pipeline_groups() -> None:
    out = _run(EXAMPLES_DIR / "pipeline.json")
    nodes = {n["id"]: n for n in out["nodes"]}

    centres = [nodes[i]["x"] + nodes[i]["width"] / 2 for i in ("fetch", "parse", "check")]
    assert centres[1] == pytest.approx(centres[0])
    assert centres[2] == pytest.approx(centres[0])
    assert nodes["fetch"]["y"] < nodes["parse"]["y"] < nodes["check"]["y"]

    assert nodes["warehouse"]["y"] == pytest.approx(nodes["search"]["y"])
    assert nodes["warehouse"]["x"] < nodes["search"]["x"]
    assert nodes["archive"]["x"] == pytest.approx(nodes["warehouse"]["x"])
    assert nodes["archive"]["y"] > nodes["warehouse"]["y"]
