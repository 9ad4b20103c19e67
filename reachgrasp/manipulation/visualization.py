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

"""Debug markers for goals and planned paths.

Markers are a display aid only; nothing reads them back to make decisions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from reachgrasp.msgs.geometry_msgs import Vector3

logger = setup_logger()


class LoggingMarkerSink:
    """MarkerSinkSpec that logs markers and keeps the latest ones."""

    def __init__(self) -> None:
        self.goal: tuple[Vector3, str] | None = None
        self.path: tuple[list[Vector3], str] | None = None

    def clear(self) -> None:
        self.goal = None
        self.path = None

    def mark_goal(self, point: Vector3, frame_id: str) -> None:
        self.goal = (point, frame_id)
        logger.info(f"Goal marker at [{point.x:.3f}, {point.y:.3f}, {point.z:.3f}] in {frame_id}")

    def mark_path(self, points: list[Vector3], frame_id: str) -> None:
        self.path = (list(points), frame_id)
        logger.debug(f"Path marker with {len(points)} points in {frame_id}")


class NullMarkerSink:
    def clear(self) -> None:
        pass

    def mark_goal(self, point: Vector3, frame_id: str) -> None:
        pass

    def mark_path(self, points: list[Vector3], frame_id: str) -> None:
        pass
