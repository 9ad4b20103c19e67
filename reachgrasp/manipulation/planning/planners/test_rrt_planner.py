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

"""Tests for the RRT-Connect position planner."""

from __future__ import annotations

import numpy as np
import pytest

from reachgrasp.manipulation.planning.planners.rrt_planner import RRTConnectPlanner
from reachgrasp.manipulation.planning.spec import CollisionGeometry, PlanningStatus
from reachgrasp.manipulation.planning.utils.collision_utils import (
    geometry_bounds,
    segment_collision_free,
)
from reachgrasp.msgs.geometry_msgs import Pose, Quaternion, Vector3

DOWN = Quaternion(1.0, 0.0, 0.0, 0.0)


def _box(name: str, lo: tuple[float, float, float], hi: tuple[float, float, float]):
    vlo, vhi = Vector3(lo), Vector3(hi)
    return CollisionGeometry(
        name=name, min=vlo, max=vhi, centre=(vlo + vhi) * 0.5, dimensions=vhi - vlo
    )


def _start(x: float, y: float, z: float) -> Pose:
    return Pose(Vector3(x, y, z), DOWN)


def _shell(centre: float = 0.5) -> list[CollisionGeometry]:
    """Six slabs closing off the cube around (centre, 0, centre)."""
    lo, hi = -0.15, 0.15
    inner, outer = 0.10, 0.15
    boxes = []
    for axis in range(3):
        for sign, label in ((-1, "neg"), (1, "pos")):
            box_lo = [lo, lo, lo]
            box_hi = [hi, hi, hi]
            box_lo[axis], box_hi[axis] = sorted((sign * inner, sign * outer))
            offset = np.array([centre, 0.0, centre])
            boxes.append(
                _box(
                    f"shell_{axis}_{label}",
                    tuple(np.array(box_lo) + offset),
                    tuple(np.array(box_hi) + offset),
                )
            )
    return boxes


class TestRRTConnectPlanner:
    def test_name(self):
        assert RRTConnectPlanner().get_name() == "RRTConnect"

    def test_free_space_gives_direct_path(self):
        planner = RRTConnectPlanner(seed=0)
        start = _start(0.45, 0.0, 0.3)
        goal = Vector3(0.5, 0.2, 0.06)

        result = planner.plan(start, goal, "coke_can", [])

        assert result.is_success()
        assert len(result.path) == 2
        assert result.path[0].position == start.position
        assert result.path[-1].position == goal
        assert result.path_length == pytest.approx(start.position.distance(goal))

    def test_waypoints_keep_start_orientation(self):
        result = RRTConnectPlanner(seed=0).plan(_start(0, 0, 0.5), Vector3(0.3, 0, 0.5), "x", [])
        assert all(p.orientation == DOWN for p in result.path)

    def test_plans_around_wall(self):
        wall = _box("wall", (0.25, -0.2, 0.3), (0.35, 0.2, 0.7))
        planner = RRTConnectPlanner(seed=0)
        start = _start(0.0, 0.0, 0.5)
        goal = Vector3(0.6, 0.0, 0.5)

        result = planner.plan(start, goal, "coke_can", [wall])

        assert result.is_success(), result.message
        assert len(result.path) > 2
        assert result.path[0].position.is_close(start.position)
        assert result.path[-1].position.is_close(goal)
        boxes = [geometry_bounds(wall, 0.01)]
        points = [p.position.to_numpy() for p in result.path]
        for p0, p1 in zip(points, points[1:], strict=False):
            assert segment_collision_free(p0, p1, boxes)

    def test_tree_junction_is_not_repeated(self):
        wall = _box("wall", (0.25, -0.2, 0.3), (0.35, 0.2, 0.7))
        planner = RRTConnectPlanner(shortcut_iterations=0, seed=0)

        result = planner.plan(_start(0.0, 0.0, 0.5), Vector3(0.6, 0.0, 0.5), "coke_can", [wall])

        assert result.is_success(), result.message
        points = [p.position.to_numpy() for p in result.path]
        for p0, p1 in zip(points, points[1:], strict=False):
            assert np.linalg.norm(p1 - p0) > 1e-9

    def test_target_geometry_is_excluded(self):
        can = _box("coke_can_collision", (0.45, 0.15, 0.0), (0.52, 0.22, 0.12))
        goal = can.centre
        planner = RRTConnectPlanner(seed=0)

        assert planner.plan(_start(0.45, 0.0, 0.3), goal, "coke_can", [can]).is_success()

        result = planner.plan(_start(0.45, 0.0, 0.3), goal, "bowl", [can])
        assert result.status == PlanningStatus.INVALID_GOAL
        assert result.path == []

    def test_ignored_names_are_not_obstacles(self):
        link = _box("arm_link_3", (0.3, -0.1, 0.4), (0.5, 0.1, 0.6))
        start = _start(0.4, 0.0, 0.5)
        goal = Vector3(0.4, 0.3, 0.2)

        blocked = RRTConnectPlanner(seed=0).plan(start, goal, "cup", [link])
        assert blocked.status == PlanningStatus.INVALID_START

        free = RRTConnectPlanner(ignored_names=("arm",), seed=0).plan(start, goal, "cup", [link])
        assert free.is_success()

    def test_enclosed_goal_has_no_solution(self):
        planner = RRTConnectPlanner(max_iterations=50, seed=0)
        result = planner.plan(_start(0.0, 0.0, 0.5), Vector3(0.5, 0.0, 0.5), "cup", _shell())

        assert result.status == PlanningStatus.NO_SOLUTION
        assert result.iterations == 50
        assert not result.is_success()

    def test_timeout(self):
        planner = RRTConnectPlanner(seed=0)
        result = planner.plan(
            _start(0.0, 0.0, 0.5), Vector3(0.5, 0.0, 0.5), "cup", _shell(), timeout=-1.0
        )
        assert result.status == PlanningStatus.TIMEOUT
