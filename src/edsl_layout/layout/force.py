"""Force-directed layout: repulsion between every pair, springs along edges.

Nodes are point masses at their box centres. With ``L = ideal_edge_length``
the pair forces are::

    repulsion  = repulsion_strength  * L**3 / d**2
    attraction = attraction_strength * d**2 / L

so with equal strengths two connected nodes settle at exactly ``L``.
"""

from __future__ import annotations

import logging
import math
import random

from edsl_layout.config import LayoutConfig
from edsl_layout.errors import NumericInstabilityError
from edsl_layout.layout.types import Scope
from edsl_layout.types import Point

logger = logging.getLogger(__name__)

_EPSILON = 1e-9
_JITTER = 0.01  # fraction of the ideal edge length


def _initial_positions(count: int, config: LayoutConfig, rng: random.Random) -> list[list[float]]:
    """Nodes on a circle in input order, nudged by seeded jitter."""
    length = config.ideal_edge_length
    radius = max(length, length * count / (2 * math.pi))
    positions: list[list[float]] = []
    for i in range(count):
        angle = 2 * math.pi * i / count
        jitter_x = rng.uniform(-1.0, 1.0) * length * _JITTER
        jitter_y = rng.uniform(-1.0, 1.0) * length * _JITTER
        positions.append([radius * math.cos(angle) + jitter_x, radius * math.sin(angle) + jitter_y])
    return positions


def _all_finite(positions: list[list[float]]) -> bool:
    return all(math.isfinite(x) and math.isfinite(y) for x, y in positions)


def compute_forces(
    positions: list[list[float]],
    springs: list[tuple[int, int]],
    config: LayoutConfig,
    rng: random.Random,
) -> list[list[float]]:
    """Net force on every node for the current positions."""
    count = len(positions)
    length = config.ideal_edge_length
    floor = max(config.min_distance, _EPSILON)
    forces = [[0.0, 0.0] for _ in range(count)]

    for i in range(count):
        for j in range(i + 1, count):
            dx = positions[i][0] - positions[j][0]
            dy = positions[i][1] - positions[j][1]
            dist = math.hypot(dx, dy)
            if dist < _EPSILON:
                angle = rng.uniform(0.0, 2 * math.pi)
                dx, dy, dist = math.cos(angle), math.sin(angle), 1.0
            magnitude = config.repulsion_strength * length**3 / max(dist, floor) ** 2
            fx = magnitude * dx / dist
            fy = magnitude * dy / dist
            forces[i][0] += fx
            forces[i][1] += fy
            forces[j][0] -= fx
            forces[j][1] -= fy

    for i, j in springs:
        dx = positions[j][0] - positions[i][0]
        dy = positions[j][1] - positions[i][1]
        dist = math.hypot(dx, dy)
        if dist < _EPSILON or length <= 0:
            continue
        magnitude = config.attraction_strength * dist**2 / length
        fx = magnitude * dx / dist
        fy = magnitude * dy / dist
        forces[i][0] += fx
        forces[i][1] += fy
        forces[j][0] -= fx
        forces[j][1] -= fy

    return forces


class ForceDirectedLayout:
    """Spring embedder with a cooling schedule."""

    name = "force"

    def simulate(self, scope: Scope, config: LayoutConfig) -> list[list[float]]:
        """Run the simulation and return node centres in member order.

        Raises:
            NumericInstabilityError: If positions are still non-finite on the
                last allowed iteration.
        """
        members = scope.members
        index = {member: i for i, member in enumerate(members)}
        rng = random.Random(config.seed)
        positions = _initial_positions(len(members), config, rng)

        springs: list[tuple[int, int]] = []
        seen: set[tuple[int, int]] = set()
        for src, tgt in scope.graph.edges():
            if src == tgt:
                continue
            pair = (min(index[src], index[tgt]), max(index[src], index[tgt]))
            if pair not in seen:
                seen.add(pair)
                springs.append(pair)

        temperature = config.ideal_edge_length
        last_finite = [list(p) for p in positions]

        for iteration in range(config.iterations):
            forces = compute_forces(positions, springs, config, rng)
            total = 0.0
            for pos, (fx, fy) in zip(positions, forces):
                dx = fx * config.step_size
                dy = fy * config.step_size
                moved = math.hypot(dx, dy)
                if moved > temperature:
                    dx *= temperature / moved
                    dy *= temperature / moved
                    moved = temperature
                pos[0] += dx
                pos[1] += dy
                total += moved

            if not _all_finite(positions) or not math.isfinite(total):
                if iteration == config.iterations - 1:
                    raise NumericInstabilityError(
                        f"Force simulation diverged in scope {scope.key!r} after {config.iterations} iterations"
                    )
                logger.warning("non-finite positions at iteration %d, resetting", iteration)
                positions = [list(p) for p in last_finite]
                temperature /= 2
                continue

            last_finite = [list(p) for p in positions]
            temperature *= config.cooling_factor
            if total < config.convergence_threshold:
                logger.debug("force layout converged after %d iterations", iteration + 1)
                break

        return positions

    def place(self, scope: Scope, config: LayoutConfig) -> dict[str, Point]:
        members = scope.members
        if not members:
            return {}
        if len(members) == 1:
            return {members[0]: Point(0.0, 0.0)}

        centres = self.simulate(scope, config)
        corners: list[tuple[float, float]] = []
        for member, (cx, cy) in zip(members, centres):
            width, height = scope.size(member)
            corners.append((cx - width / 2, cy - height / 2))

        min_x = min(x for x, _ in corners)
        min_y = min(y for _, y in corners)
        return {member: Point(x - min_x, y - min_y) for member, (x, y) in zip(members, corners)}
