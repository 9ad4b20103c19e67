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

"""Reach-and-grasp planning: geometry aggregation, target lookup, path conversion."""

from reachgrasp.manipulation.planning.factory import (
    create_kinematics,
    create_manipulator,
    create_planner,
)
from reachgrasp.manipulation.planning.geometry_index import GeometryIndex, link_query_names
from reachgrasp.manipulation.planning.target_resolver import resolve_target
from reachgrasp.manipulation.planning.trajectory import PathToTrajectory

__all__ = [
    "GeometryIndex",
    "PathToTrajectory",
    "create_kinematics",
    "create_manipulator",
    "create_planner",
    "link_query_names",
    "resolve_target",
]
