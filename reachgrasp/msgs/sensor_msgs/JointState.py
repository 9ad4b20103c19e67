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

from __future__ import annotations

from dataclasses import dataclass, field
import time


@dataclass
class JointState:
    """Named joint positions (and optionally velocities/efforts) at one instant.

    Attributes:
        name: Joint names, index-aligned with the value arrays
        position: Joint positions (radians)
        velocity: Joint velocities (rad/s), empty if unknown
        effort: Joint efforts, empty if unknown
        ts: Wall-clock time the state was sampled
    """

    name: list[str] = field(default_factory=list)
    position: list[float] = field(default_factory=list)
    velocity: list[float] = field(default_factory=list)
    effort: list[float] = field(default_factory=list)
    ts: float = field(default_factory=time.time)

    msg_name = "sensor_msgs.JointState"

    def positions_for(self, joint_names: list[str]) -> list[float] | None:
        """Positions reordered to `joint_names`, or None if any joint is missing."""
        name_to_idx = {n: i for i, n in enumerate(self.name)}
        positions = []
        for joint_name in joint_names:
            idx = name_to_idx.get(joint_name)
            if idx is None or idx >= len(self.position):
                return None
            positions.append(float(self.position[idx]))
        return positions
