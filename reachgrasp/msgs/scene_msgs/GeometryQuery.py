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

"""Request/response pair of the scene geometry query service.

The response carries parallel arrays: entry j of every array describes the
same collision geometry. `pose` is either empty or the same length as `names`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reachgrasp.msgs.geometry_msgs import Pose, Vector3


@dataclass
class GeometryRequest:
    entity_name: str

    msg_name = "scene_msgs.GeometryRequest"


@dataclass
class GeometryResponse:
    names: list[str] = field(default_factory=list)
    min_bounds: list[Vector3] = field(default_factory=list)
    max_bounds: list[Vector3] = field(default_factory=list)
    centre: list[Vector3] = field(default_factory=list)
    dimensions: list[Vector3] = field(default_factory=list)
    pose: list[Pose] = field(default_factory=list)
    message: str = ""
    success: bool = False

    msg_name = "scene_msgs.GeometryResponse"

    def __len__(self) -> int:
        return len(self.names)

    def is_consistent(self) -> bool:
        """Check that the parallel arrays share index correspondence."""
        n = len(self.names)
        lengths = {
            len(self.min_bounds),
            len(self.max_bounds),
            len(self.centre),
            len(self.dimensions),
        }
        return lengths == {n} and len(self.pose) in (0, n)
