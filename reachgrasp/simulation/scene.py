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
Simulated Scene

In-process stand-in for the simulator: a set of models loaded from a JSON
scene description, queried for collision geometry through GeometryProviderSpec,
and announced through a scene-state stream.

Query semantics:
    - A request containing "_link" addresses one link: the model is the part of
      the name before "_link", and the link's collision box is returned under
      the requested name, together with the link's pose.
    - Any other request addresses a whole model: every collision box of every
      link is returned, named "<model>_<collision>", without pose.

Example:
    scene = SimulatedScene.from_file(Path("tabletop.json"))
    monitor.attach(scene.states())
    scene.publish_state()
"""

from __future__ import annotations

import json
from pathlib import Path
import threading

from pydantic import BaseModel, Field, ValidationError, model_validator
from reactivex.observable import Observable
from reactivex.subject import Subject

from reachgrasp.msgs.geometry_msgs import Pose, Quaternion, Vector3
from reachgrasp.msgs.scene_msgs import GeometryRequest, GeometryResponse, SceneState
from reachgrasp.utils.logging_config import setup_logger

logger = setup_logger()

MODEL_NOT_FOUND = "Error, model does not exist!"
LINK_NOT_FOUND = "Error, link does not exist!"


class CollisionBox(BaseModel):
    """Axis-aligned collision box in the world frame."""

    name: str
    min: tuple[float, float, float]
    max: tuple[float, float, float]

    @model_validator(mode="after")
    def _check_bounds(self) -> CollisionBox:
        if any(lo > hi for lo, hi in zip(self.min, self.max, strict=True)):
            raise ValueError(f"collision '{self.name}': min {self.min} exceeds max {self.max}")
        return self


class LinkPose(BaseModel):
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    orientation: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)


class SceneLink(BaseModel):
    name: str
    pose: LinkPose | None = None
    collisions: list[CollisionBox] = Field(default_factory=list)

    def bounds(self) -> tuple[Vector3, Vector3] | None:
        """Union of the link's collision boxes, None if it has none."""
        if not self.collisions:
            return None
        lo = [min(c.min[i] for c in self.collisions) for i in range(3)]
        hi = [max(c.max[i] for c in self.collisions) for i in range(3)]
        return Vector3(lo), Vector3(hi)

    def world_pose(self) -> Pose:
        """Explicit pose if given, else the box centre with identity orientation."""
        if self.pose is not None:
            return Pose(Vector3(self.pose.position), Quaternion(self.pose.orientation))
        bounds = self.bounds()
        if bounds is None:
            return Pose()
        lo, hi = bounds
        return Pose((lo + hi) * 0.5, Quaternion())


class SceneModel(BaseModel):
    name: str
    links: list[SceneLink] = Field(default_factory=list)


class SceneDescription(BaseModel):
    """Root of a JSON scene file."""

    models: list[SceneModel] = Field(default_factory=list)


def _append_box(response: GeometryResponse, name: str, lo: Vector3, hi: Vector3) -> None:
    response.names.append(name)
    response.min_bounds.append(lo)
    response.max_bounds.append(hi)
    response.centre.append((lo + hi) * 0.5)
    response.dimensions.append(hi - lo)


class SimulatedScene:
    """GeometryProviderSpec and scene-state feed over an in-memory model set.

    ## Thread Safety

    Model set changes and queries are serialized by an internal lock; states
    are published on the caller's thread.
    """

    def __init__(self, description: SceneDescription | None = None):
        self._lock = threading.Lock()
        self._models: dict[str, SceneModel] = {}
        self._states: Subject[SceneState] = Subject()
        for model in (description.models if description else []):
            self.add_model(model)

    @classmethod
    def from_file(cls, path: Path) -> SimulatedScene:
        """Load a scene description; raises ValueError on a malformed file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            description = SceneDescription.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Invalid scene file {path}: {e}") from e
        logger.info(f"Loaded scene {path} with {len(description.models)} models")
        return cls(description)

    def add_model(self, model: SceneModel) -> None:
        with self._lock:
            self._models[model.name] = model

    def remove_model(self, name: str) -> bool:
        with self._lock:
            return self._models.pop(name, None) is not None

    def entity_names(self) -> list[str]:
        """Model names in insertion order."""
        with self._lock:
            return list(self._models)

    def states(self) -> Observable[SceneState]:
        return self._states

    def publish_state(self) -> SceneState:
        """Push the current entity list to scene-state subscribers."""
        state = SceneState(entity_names=self.entity_names())
        self._states.on_next(state)
        return state

    def get_geometry(self, request: GeometryRequest) -> GeometryResponse:
        name = request.entity_name
        link_request = "_link" in name
        model_name = name.split("_link", 1)[0] if link_request else name

        with self._lock:
            model = self._models.get(model_name)
        if model is None:
            return GeometryResponse(message=MODEL_NOT_FOUND, success=False)

        response = GeometryResponse(success=True)
        if link_request:
            link = next((candidate for candidate in model.links if candidate.name == name), None)
            if link is None:
                return GeometryResponse(message=LINK_NOT_FOUND, success=False)
            bounds = link.bounds()
            if bounds is not None:
                _append_box(response, name, *bounds)
                response.pose.append(link.world_pose())
        else:
            for link in model.links:
                for collision in link.collisions:
                    _append_box(
                        response,
                        f"{model.name}_{collision.name}",
                        Vector3(collision.min),
                        Vector3(collision.max),
                    )

        response.message = f"{len(response.names)} geometries"
        return response
