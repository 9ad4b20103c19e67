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

"""
Collision Utilities

Axis-aligned box tests used by the Cartesian planner. Boxes are given by their
min/max corners in the world frame; `margin` inflates every box uniformly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import NDArray

    from reachgrasp.manipulation.planning.spec import CollisionGeometry

BoxBounds = tuple["NDArray[np.float64]", "NDArray[np.float64]"]


def geometry_bounds(geometry: CollisionGeometry, margin: float = 0.0) -> BoxBounds:
    """(min, max) corners of a collision geometry as arrays, inflated by margin."""
    return (
        geometry.min.to_numpy() - margin,
        geometry.max.to_numpy() + margin,
    )


def point_in_box(point: NDArray[np.float64], box: BoxBounds) -> bool:
    lo, hi = box
    return bool(np.all(point >= lo) and np.all(point <= hi))


def segment_intersects_box(
    p0: NDArray[np.float64],
    p1: NDArray[np.float64],
    box: BoxBounds,
) -> bool:
    """Slab test for the segment p0 -> p1 against an axis-aligned box."""
    lo, hi = box
    direction = p1 - p0
    t_enter, t_exit = 0.0, 1.0

    for axis in range(3):
        if abs(direction[axis]) < 1e-12:
            # Parallel to this slab: must already lie within it
            if p0[axis] < lo[axis] or p0[axis] > hi[axis]:
                return False
            continue
        t0 = (lo[axis] - p0[axis]) / direction[axis]
        t1 = (hi[axis] - p0[axis]) / direction[axis]
        if t0 > t1:
            t0, t1 = t1, t0
        t_enter = max(t_enter, t0)
        t_exit = min(t_exit, t1)
        if t_enter > t_exit:
            return False

    return True


def segment_collision_free(
    p0: NDArray[np.float64],
    p1: NDArray[np.float64],
    boxes: Iterable[BoxBounds],
) -> bool:
    return not any(segment_intersects_box(p0, p1, box) for box in boxes)


def point_collision_free(point: NDArray[np.float64], boxes: Iterable[BoxBounds]) -> bool:
    return not any(point_in_box(point, box) for box in boxes)
