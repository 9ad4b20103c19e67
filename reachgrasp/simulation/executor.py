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

"""Simulated trajectory execution over an in-process joint state."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import ExecutionResult, ExecutionStatus
from reachgrasp.msgs.sensor_msgs import JointState
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from reachgrasp.msgs.trajectory_msgs import JointTrajectory

logger = setup_logger()


class SimulatedTrajectoryExecutor:
    """TrajectoryExecutorSpec that jumps the simulated joints to the final point.

    Execution is instantaneous: the trajectory is validated, its last point is
    applied and published through `on_state`, and SUCCEEDED is returned. A
    trajectory whose duration exceeds the timeout is reported as TIMEOUT
    without moving.
    """

    def __init__(
        self,
        on_state: Callable[[JointState], None],
        joint_names: Sequence[str] | None = None,
        name: str = "executor",
    ):
        """Create the executor.

        Args:
            on_state: Receives the joint state after each executed trajectory
            joint_names: Joints this executor controls; None accepts any
            name: Label used in log messages
        """
        self._on_state = on_state
        self._joint_names = set(joint_names) if joint_names is not None else None
        self._name = name
        self._lock = threading.Lock()
        self.executed: list[JointTrajectory] = []

    def execute(self, trajectory: JointTrajectory, timeout: float = 60.0) -> ExecutionResult:
        problems = trajectory.validate()
        if self._joint_names is not None:
            unknown = [n for n in trajectory.joint_names if n not in self._joint_names]
            if unknown:
                problems.append(f"unknown joints {unknown}")
        if problems:
            message = "; ".join(problems)
            logger.warning(f"[{self._name}] Rejected trajectory: {message}")
            return ExecutionResult(status=ExecutionStatus.FAILED, message=message)

        if trajectory.duration > timeout:
            message = f"duration {trajectory.duration:.1f}s exceeds timeout {timeout:.1f}s"
            logger.warning(f"[{self._name}] {message}")
            return ExecutionResult(status=ExecutionStatus.TIMEOUT, message=message)

        final = trajectory.points[-1]
        with self._lock:
            self.executed.append(trajectory)
            self._on_state(
                JointState(name=list(trajectory.joint_names), position=list(final.positions))
            )

        logger.debug(
            f"[{self._name}] Executed {len(trajectory.points)} points in {trajectory.duration:.1f}s"
        )
        return ExecutionResult(status=ExecutionStatus.SUCCEEDED, message="Trajectory executed")
