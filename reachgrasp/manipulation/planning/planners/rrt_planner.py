# Copyright 2025-2026 Dimensional Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""RRT-Connect planner over end-effector positions implementing PlannerSpec.

Obstacles are the aggregated axis-aligned collision boxes. The planner searches
in Cartesian position space only; every waypoint of the returned path keeps the
orientation of the start pose.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import TYPE_CHECKING

import numpy as np

from reachgrasp.manipulation.planning.spec import PlanningResult, PlanningStatus
from reachgrasp.manipulation.planning.utils.collision_utils import (
    geometry_bounds,
    point_collision_free,
    segment_collision_free,
)
from reachgrasp.manipulation.planning.utils.path_utils import compute_path_length
from reachgrasp.msgs.geometry_msgs import Pose, Vector3
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from reachgrasp.manipulation.planning.spec import CollisionGeometry
    from reachgrasp.manipulation.planning.utils.collision_utils import BoxBounds
    from reachgrasp.msgs.geometry_msgs import Quaternion

logger = setup_logger()


@dataclass(eq=False)
class TreeNode:
    """Node in an RRT tree."""

    point: NDArray[np.float64]
    parent: TreeNode | None = None
    children: list[TreeNode] = field(default_factory=list)

    def path_to_root(self) -> list[NDArray[np.float64]]:
        """Points from the root down to this node."""
        path = []
        node: TreeNode | None = self
        while node is not None:
            path.append(node.point)
            node = node.parent
        return list(reversed(path))


class RRTConnectPlanner:
    """Bi-directional RRT-Connect in end-effector position space."""

    def __init__(
        self,
        ignored_names: Sequence[str] = (),
        workspace_lower: Sequence[float] = (-1.0, -1.0, -0.2),
        workspace_upper: Sequence[float] = (1.0, 1.0, 1.2),
        step_size: float = 0.05,
        goal_tolerance: float = 0.01,
        obstacle_margin: float = 0.01,
        max_iterations: int = 5000,
        shortcut_iterations: int = 100,
        seed: int | None = None,
    ):
        """Create the planner.

        Args:
            ignored_names: Obstacles whose name contains any of these are
                skipped (typically the manipulator's own name)
            workspace_lower: Lower corner of the sampling box
            workspace_upper: Upper corner of the sampling box
            step_size: Tree extension step (meters)
            goal_tolerance: Distance at which the trees count as connected
            obstacle_margin: Uniform inflation of every obstacle box
            max_iterations: Sampling iterations before giving up
            shortcut_iterations: Random shortcut attempts on the found path
            seed: RNG seed, for reproducible plans
        """
        self._ignored_names = tuple(ignored_names)
        self._workspace_lower = np.array(workspace_lower, dtype=np.float64)
        self._workspace_upper = np.array(workspace_upper, dtype=np.float64)
        self._step_size = step_size
        self._goal_tolerance = goal_tolerance
        self._obstacle_margin = obstacle_margin
        self._max_iterations = max_iterations
        self._shortcut_iterations = shortcut_iterations
        self._rng = np.random.default_rng(seed)

    def get_name(self) -> str:
        """Get planner name."""
        return "RRTConnect"

    def plan(
        self,
        start: Pose,
        goal: Vector3,
        target_name: str,
        obstacles: list[CollisionGeometry],
        timeout: float = 5.0,
    ) -> PlanningResult:
        """Plan a collision-free position path from `start` to `goal`.

        The target's own geometry (any obstacle whose name contains
        `target_name`) is excluded, since the goal lies inside it.
        """
        start_time = time.time()
        p_start = start.position.to_numpy()
        p_goal = goal.to_numpy()
        boxes = self._active_boxes(obstacles, target_name)

        if not point_collision_free(p_start, boxes):
            return _create_failure_result(
                PlanningStatus.INVALID_START, "Start position is in collision"
            )
        if not point_collision_free(p_goal, boxes):
            return _create_failure_result(
                PlanningStatus.INVALID_GOAL, "Goal position is in collision"
            )

        if segment_collision_free(p_start, p_goal, boxes):
            return _create_success_result(
                [p_start, p_goal], start.orientation, time.time() - start_time, 0
            )

        lower = np.minimum(self._workspace_lower, np.minimum(p_start, p_goal))
        upper = np.maximum(self._workspace_upper, np.maximum(p_start, p_goal))
        start_tree = [TreeNode(point=p_start.copy())]
        goal_tree = [TreeNode(point=p_goal.copy())]
        trees_swapped = False

        for iteration in range(self._max_iterations):
            if time.time() - start_time > timeout:
                return _create_failure_result(
                    PlanningStatus.TIMEOUT,
                    f"Timeout after {iteration} iterations",
                    time.time() - start_time,
                    iteration,
                )

            sample = self._rng.uniform(lower, upper)
            extended = self._extend_tree(start_tree, sample, boxes)

            if extended is not None:
                connected = self._connect_tree(goal_tree, extended.point, boxes)
                if connected is not None:
                    # connected ends on extended.point, keep one copy of the junction
                    points = extended.path_to_root() + connected.path_to_root()[-2::-1]
                    if trees_swapped:
                        points = list(reversed(points))
                    points = self._shortcut(points, boxes)
                    return _create_success_result(
                        points, start.orientation, time.time() - start_time, iteration + 1
                    )

            start_tree, goal_tree = goal_tree, start_tree
            trees_swapped = not trees_swapped

        return _create_failure_result(
            PlanningStatus.NO_SOLUTION,
            f"No path found after {self._max_iterations} iterations",
            time.time() - start_time,
            self._max_iterations,
        )

    def _active_boxes(
        self, obstacles: list[CollisionGeometry], target_name: str
    ) -> list[BoxBounds]:
        boxes = []
        for obstacle in obstacles:
            if target_name and target_name in obstacle.name:
                continue
            if any(ignored in obstacle.name for ignored in self._ignored_names):
                continue
            boxes.append(geometry_bounds(obstacle, self._obstacle_margin))
        return boxes

    def _extend_tree(
        self,
        tree: list[TreeNode],
        target: NDArray[np.float64],
        boxes: list[BoxBounds],
    ) -> TreeNode | None:
        """Extend tree one step toward target, returns the new node if collision-free."""
        nearest = min(tree, key=lambda n: float(np.linalg.norm(n.point - target)))

        diff = target - nearest.point
        dist = float(np.linalg.norm(diff))
        if dist <= self._step_size:
            new_point = target.copy()
        else:
            new_point = nearest.point + self._step_size * (diff / dist)

        if not segment_collision_free(nearest.point, new_point, boxes):
            return None

        node = TreeNode(point=new_point, parent=nearest)
        nearest.children.append(node)
        tree.append(node)
        return node

    def _connect_tree(
        self,
        tree: list[TreeNode],
        target: NDArray[np.float64],
        boxes: list[BoxBounds],
    ) -> TreeNode | None:
        """Greedily extend tree until it reaches target or hits an obstacle."""
        while True:
            node = self._extend_tree(tree, target, boxes)
            if node is None:
                return None
            if float(np.linalg.norm(node.point - target)) < self._goal_tolerance:
                return node

    def _shortcut(
        self, points: list[NDArray[np.float64]], boxes: list[BoxBounds]
    ) -> list[NDArray[np.float64]]:
        """Simplify path by random shortcutting; endpoints are preserved."""
        simplified = list(points)
        for _ in range(self._shortcut_iterations):
            if len(simplified) <= 2:
                break
            i = int(self._rng.integers(0, len(simplified) - 2))
            j = int(self._rng.integers(i + 2, len(simplified)))
            if segment_collision_free(simplified[i], simplified[j], boxes):
                simplified = simplified[: i + 1] + simplified[j:]
        return simplified


# ============= Result Helpers =============


def _create_success_result(
    points: list[NDArray[np.float64]],
    orientation: Quaternion,
    planning_time: float,
    iterations: int,
) -> PlanningResult:
    path = [Pose(Vector3(p), orientation) for p in points]
    return PlanningResult(
        status=PlanningStatus.SUCCESS,
        path=path,
        planning_time=planning_time,
        path_length=compute_path_length(path),
        iterations=iterations,
        message="Path found",
    )


def _create_failure_result(
    status: PlanningStatus,
    message: str,
    planning_time: float = 0.0,
    iterations: int = 0,
) -> PlanningResult:
    logger.debug(f"Planning failed ({status.name}): {message}")
    return PlanningResult(
        status=status,
        path=[],
        planning_time=planning_time,
        iterations=iterations,
        message=message,
    )
