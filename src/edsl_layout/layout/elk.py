"""ELK layout delegate.

The graph is converted to ELK JSON (containers become compound children,
edges are listed at the root with hierarchy handling across levels), handed
to a runner, and the result is read back. The default runner executes
``elkjs`` with ``node`` in a subprocess; tests and embedders can inject any
callable that maps an ELK graph dict to a laid-out ELK graph dict.

Nothing is written to the graph until the whole result has been checked.
"""

from __future__ import annotations

import json
import logging
import math
import os
import subprocess
import tempfile
from collections.abc import Callable
from typing import Any

from edsl_layout.config import LayoutConfig
from edsl_layout.errors import DelegateFailureError
from edsl_layout.ir.graph import GraphIR
from edsl_layout.layout.edges import connect_edges
from edsl_layout.types import BoundingBox, Direction

logger = logging.getLogger(__name__)

ElkRunner = Callable[[dict[str, Any]], dict[str, Any]]

ELK_DIRECTIONS: dict[Direction, str] = {
    Direction.TB: "DOWN",
    Direction.BT: "UP",
    Direction.LR: "RIGHT",
    Direction.RL: "LEFT",
}

_ELK_SCRIPT = """
const ELK = require('elkjs');
const elk = new ELK();
let input = '';
process.stdin.on('data', chunk => { input += chunk; });
process.stdin.on('end', () => {
    elk.layout(JSON.parse(input))
        .then(r => console.log(JSON.stringify(r)))
        .catch(e => { console.error(e); process.exit(1); });
});
"""


# ─── ELK JSON ────────────────────────────────────────────────────────────────


def _labels(text: str | None) -> list[dict[str, str]]:
    return [{"text": text}] if text else []


def to_elk_graph(gir: GraphIR, config: LayoutConfig) -> dict[str, Any]:
    """Build the ELK input graph. ``gir`` must be validated."""

    def member_json(member: str) -> dict[str, Any]:
        idx = gir.container_index(member)
        if idx is None:
            node = gir.node(member)
            return {"id": node.id, "width": node.width, "height": node.height, "labels": _labels(node.label)}
        container = gir.containers[idx]
        pad = container.padding(config.container_padding)
        return {
            "id": container.key,
            "labels": _labels(container.label),
            "layoutOptions": {"elk.padding": f"[top={pad},left={pad},bottom={pad},right={pad}]"},
            "children": [member_json(m) for m in container.members],
        }

    return {
        "id": "root",
        "layoutOptions": {
            "elk.algorithm": "layered",
            "elk.direction": ELK_DIRECTIONS[config.direction],
            "elk.hierarchyHandling": "INCLUDE_CHILDREN",
            "elk.spacing.nodeNode": str(config.node_spacing),
            "elk.layered.spacing.nodeNodeBetweenLayers": str(config.rank_spacing),
            "elk.spacing.edgeEdge": str(config.edge_spacing),
            "elk.randomSeed": str(config.seed),
        },
        "children": [member_json(m) for m in gir.root_members()],
        "edges": [
            {"id": f"e{edge.id}", "sources": [edge.source], "targets": [edge.target]}
            for edge in gir.edges()
        ],
    }


def _number(element: dict[str, Any], key: str) -> float:
    value = element.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise DelegateFailureError(f"ELK result has invalid '{key}' for element '{element.get('id')}': {value!r}")
    return float(value)


def read_elk_result(result: Any) -> dict[str, tuple[float, float, float, float]]:
    """Flatten an ELK result into absolute boxes keyed by element id."""
    if not isinstance(result, dict):
        raise DelegateFailureError(f"ELK result must be an object, got {type(result).__name__}")

    boxes: dict[str, tuple[float, float, float, float]] = {}

    def walk(children: Any, origin_x: float, origin_y: float) -> None:
        if not isinstance(children, list):
            raise DelegateFailureError("ELK result 'children' must be a list")
        for child in children:
            if not isinstance(child, dict) or "id" not in child:
                raise DelegateFailureError(f"ELK result has a malformed element: {child!r}")
            x = origin_x + _number(child, "x")
            y = origin_y + _number(child, "y")
            width = _number(child, "width")
            height = _number(child, "height")
            if width < 0 or height < 0:
                raise DelegateFailureError(
                    f"ELK result has a negative size for element '{child['id']}': {width} x {height}"
                )
            boxes[str(child["id"])] = (x, y, width, height)
            walk(child.get("children", []), x, y)

    walk(result.get("children", []), 0.0, 0.0)
    return boxes


# ─── Runners ─────────────────────────────────────────────────────────────────


class NodeElkRunner:
    """Run elkjs through ``node``. ``NODE_PATH`` may point at a node_modules directory."""

    def __init__(self, node: str = "node", timeout: float = 30.0, node_path: str | None = None) -> None:
        self.node = node
        self.timeout = timeout
        self.node_path = node_path

    def __call__(self, graph: dict[str, Any]) -> dict[str, Any]:
        env = os.environ.copy()
        if self.node_path:
            env["NODE_PATH"] = self.node_path

        with tempfile.NamedTemporaryFile(mode="w", suffix=".js", delete=False, encoding="utf-8") as f:
            f.write(_ELK_SCRIPT)
            script_path = f.name
        try:
            result = subprocess.run(
                [self.node, script_path],
                input=json.dumps(graph),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        finally:
            os.unlink(script_path)

        if result.returncode != 0:
            raise DelegateFailureError(f"elkjs exited with code {result.returncode}: {result.stderr.strip()}")
        return json.loads(result.stdout)


# ─── Engine ──────────────────────────────────────────────────────────────────


class ElkLayout:
    """Layout engine that delegates the whole graph to ELK."""

    name = "elk"

    def __init__(self, runner: ElkRunner | None = None) -> None:
        self.runner: ElkRunner = runner or NodeElkRunner()

    def layout(self, gir: GraphIR, config: LayoutConfig) -> None:
        """Lay out ``gir`` with ELK.

        Raises:
            DelegateFailureError: If the runner fails, times out, returns
                something that is not an ELK graph, omits any node or
                container, or reports a non-finite position or a negative
                size. The graph is left untouched in that case.
        """
        request = to_elk_graph(gir, config)
        try:
            result = self.runner(request)
        except DelegateFailureError:
            raise
        except Exception as exc:
            raise DelegateFailureError(f"ELK runner failed: {exc}") from exc

        boxes = read_elk_result(result)
        missing = [n.id for n in gir.nodes() if n.id not in boxes]
        missing.extend(c.key for c in gir.containers if c.key not in boxes)
        if missing:
            raise DelegateFailureError(f"ELK result is missing elements: {', '.join(missing)}")

        for node in gir.nodes():
            node.x, node.y, _, _ = boxes[node.id]
        for container in gir.containers:
            container.bounds = BoundingBox(*boxes[container.key])
        connect_edges(gir)
        logger.debug("ELK placed %d nodes and %d containers", gir.node_count(), len(gir.containers))
