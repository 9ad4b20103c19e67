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

"""Target lookup among aggregated collision geometries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import TargetResolution
from reachgrasp.msgs.geometry_msgs import Vector3

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reachgrasp.manipulation.planning.spec import CollisionGeometry


def resolve_target(geometries: Sequence[CollisionGeometry], target_name: str) -> TargetResolution:
    """Return the centre of the first geometry whose name contains `target_name`.

    Matching is by substring so that provider-assigned suffixes such as
    "<target>_collision" still match. An empty target name never matches.
    """
    if not target_name:
        return TargetResolution()

    for index, geometry in enumerate(geometries):
        if target_name in geometry.name:
            return TargetResolution(
                goal=Vector3(geometry.centre),
                geometry_name=geometry.name,
                index=index,
            )
    return TargetResolution()
