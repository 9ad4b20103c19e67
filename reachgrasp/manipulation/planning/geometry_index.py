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
Geometry Index

Aggregates the collision boxes of every scene object and of the manipulator's
own links into one flat, ordered list. The list is used both as the planner's
obstacle input and for target resolution.

Ordering is significant: scene objects come first, in the order of the scene
snapshot, followed by arm links 1..n and finger links 1..k of the manipulator.

Example:
    index = GeometryIndex(provider)
    geometries = index.aggregate(snapshot.names, manipulator.config)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import CollisionGeometry
from reachgrasp.msgs.scene_msgs import GeometryRequest
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reachgrasp.manipulation.planning.spec import (
        GeometryProviderSpec,
        ManipulatorModelConfig,
    )
    from reachgrasp.msgs.scene_msgs import GeometryResponse

logger = setup_logger()


def link_query_names(config: ManipulatorModelConfig) -> list[str]:
    """Canonical per-link query names of a manipulator.

    Arm links are "<name>_link_<i>" for i in 1..num_joints, finger links are
    "<name>_link_finger_<k>" for k in 1..num_finger_links.
    """
    names = []
    for i in range(config.num_joints + config.num_finger_links):
        if i < config.num_joints:
            names.append(f"{config.name}_link_{i + 1}")
        else:
            names.append(f"{config.name}_link_finger_{i + 1 - config.num_joints}")
    return names


def response_to_geometries(
    response: GeometryResponse, include_pose: bool = False
) -> list[CollisionGeometry]:
    """Convert a geometry query response into CollisionGeometry entries.

    Entries violating min <= max or dimensions == max - min are dropped.

    Args:
        response: Successful query response (parallel arrays)
        include_pose: Copy the per-entry pose, if the response carries one

    Returns:
        Geometries in response order
    """
    if not response.is_consistent():
        logger.warning(
            "Geometry response arrays are not index-aligned, ignoring",
            names=len(response.names),
            message=response.message,
        )
        return []

    geometries = []
    for j, name in enumerate(response.names):
        pose = response.pose[j] if include_pose and response.pose else None
        geometry = CollisionGeometry(
            name=name,
            min=response.min_bounds[j],
            max=response.max_bounds[j],
            centre=response.centre[j],
            dimensions=response.dimensions[j],
            pose=pose,
        )
        if not geometry.is_well_formed():
            logger.warning(f"Dropping malformed collision box '{name}'")
            continue
        geometries.append(geometry)
    return geometries


class GeometryIndex:
    """Builds the flat collision geometry list from per-entity provider queries.

    A failed or empty query contributes nothing: objects may lack collision
    geometry or may not be spawned yet.
    """

    def __init__(self, provider: GeometryProviderSpec):
        self._provider = provider

    def aggregate(
        self,
        scene_names: Sequence[str],
        manipulator: ManipulatorModelConfig,
    ) -> list[CollisionGeometry]:
        """Query every non-manipulator scene entity, then every manipulator link.

        Args:
            scene_names: Entity names of one scene snapshot, in snapshot order
            manipulator: Model whose name identifies its own entities and links

        Returns:
            Scene geometries (no pose) followed by link geometries (with pose)
        """
        geometries: list[CollisionGeometry] = []
        seen: set[str] = set()

        for entity_name in scene_names:
            if manipulator.owns(entity_name):
                continue
            self._extend(geometries, seen, self._query(entity_name, include_pose=False))

        for link_name in link_query_names(manipulator):
            self._extend(geometries, seen, self._query(link_name, include_pose=True))

        logger.debug(
            f"Aggregated {len(geometries)} collision geometries from {len(scene_names)} entities"
        )
        return geometries

    def _query(self, entity_name: str, include_pose: bool) -> list[CollisionGeometry]:
        try:
            response = self._provider.get_geometry(GeometryRequest(entity_name=entity_name))
        except Exception as e:
            logger.warning(f"Geometry query for '{entity_name}' failed: {e}")
            return []

        if not response.success:
            logger.debug(f"No geometry for '{entity_name}': {response.message}")
            return []
        return response_to_geometries(response, include_pose=include_pose)

    @staticmethod
    def _extend(
        geometries: list[CollisionGeometry],
        seen: set[str],
        new: list[CollisionGeometry],
    ) -> None:
        for geometry in new:
            if geometry.name in seen:
                logger.debug(f"Duplicate collision geometry '{geometry.name}' ignored")
                continue
            seen.add(geometry.name)
            geometries.append(geometry)
