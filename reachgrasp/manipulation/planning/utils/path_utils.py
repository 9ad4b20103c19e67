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
Path Utilities

Helpers for Cartesian waypoint paths (lists of Pose).

- compute_path_length(): Euclidean length through the waypoint positions
- path_positions(): waypoint positions as Vector3, e.g. for marker output
- save_path(): write a path to a timestamped JSON file for offline inspection
- load_path(): read a path written by save_path()
"""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from typing import TYPE_CHECKING

from reachgrasp.msgs.geometry_msgs import Pose, Vector3
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = setup_logger()


def compute_path_length(path: Sequence[Pose]) -> float:
    """Sum of distances between consecutive waypoint positions (meters)."""
    return sum(
        (path[i].position.distance(path[i + 1].position) for i in range(len(path) - 1)),
        0.0,
    )


def path_positions(path: Sequence[Pose]) -> list[Vector3]:
    return [Vector3(pose.position) for pose in path]


def save_path(
    path: Sequence[Pose],
    output_dir: Path,
    target_name: str,
    frame_id: str,
) -> Path:
    """Write `path` as JSON into `output_dir` and return the file written.

    Example:
        save_path(result.path, Path("/tmp/paths"), "coke_can", "j2s7s300_link_base")
        # -> /tmp/paths/path_coke_can_20260101_120000_123456.json
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    file_path = output_dir / f"path_{target_name}_{stamp}.json"

    payload = {
        "target": target_name,
        "frame_id": frame_id,
        "length": compute_path_length(path),
        "waypoints": [pose.to_dict() for pose in path],
    }
    file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(f"Saved {len(path)}-waypoint path to {file_path}")
    return file_path


def load_path(file_path: Path) -> list[Pose]:
    payload = json.loads(Path(file_path).read_text(encoding="utf-8"))
    return [Pose(waypoint) for waypoint in payload["waypoints"]]
