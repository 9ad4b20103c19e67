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

from reachgrasp.msgs.trajectory_msgs.TrajectoryPoint import TrajectoryPoint


@dataclass
class JointTrajectory:
    """Position-commanded joint trajectory.

    Attributes:
        joint_names: Names of the commanded joints
        points: Ordered trajectory points; time_from_start must strictly increase
        timestamp: Wall-clock time the trajectory was stamped for dispatch
    """

    joint_names: list[str] = field(default_factory=list)
    points: list[TrajectoryPoint] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    msg_name = "trajectory_msgs.JointTrajectory"

    @property
    def duration(self) -> float:
        """Time from start of the last point (seconds)."""
        return self.points[-1].time_from_start if self.points else 0.0

    def validate(self) -> list[str]:
        """Return a list of invariant violations (empty if the trajectory is well-formed)."""
        problems: list[str] = []
        n = len(self.joint_names)
        if not self.points:
            problems.append("trajectory has no points")
        previous: float | None = None
        for i, point in enumerate(self.points):
            if len(point.positions) != n:
                problems.append(f"point {i}: {len(point.positions)} positions for {n} joints")
            for label, values in (
                ("velocities", point.velocities),
                ("accelerations", point.accelerations),
                ("effort", point.effort),
            ):
                if values and len(values) != n:
                    problems.append(f"point {i}: {len(values)} {label} for {n} joints")
            if previous is not None and point.time_from_start <= previous:
                problems.append(f"point {i}: time_from_start is not increasing")
            previous = point.time_from_start
        return problems

    def is_valid(self) -> bool:
        return not self.validate()
