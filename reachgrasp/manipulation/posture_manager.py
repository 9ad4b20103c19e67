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
Posture Manager

Fixed "home" and "init" postures of the manipulator, and the sequential
arm-then-gripper dispatch shared with the run controller.

Example:
    dispatcher = TrajectoryDispatcher(arm_executor, gripper_executor)
    postures = PostureManager(manipulator.config, dispatcher)
    postures.go_to_init(object_secured=False)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import ExecutionResult, ExecutionStatus
from reachgrasp.manipulation.planning.trajectory.path_to_trajectory import (
    ARM_EFFORT,
    GRIPPER_CLOSED,
    GRIPPER_PARTIAL_OPEN,
    gripper_trajectory,
    single_point_trajectory,
)
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from reachgrasp.manipulation.planning.spec import (
        ManipulatorModelConfig,
        TrajectoryExecutorSpec,
    )
    from reachgrasp.msgs.trajectory_msgs import JointTrajectory

logger = setup_logger()

POSTURE_ARM_TIME = 5.0
POSTURE_GRIPPER_TIME = 3.0


class TrajectoryDispatcher:
    """Sends an arm trajectory, waits for its result, then sends the gripper trajectory.

    The gripper trajectory is skipped when the arm does not succeed. No
    dispatch is ever retried.
    """

    def __init__(
        self,
        arm_executor: TrajectoryExecutorSpec,
        gripper_executor: TrajectoryExecutorSpec,
        timeout: float = 60.0,
    ):
        self._arm_executor = arm_executor
        self._gripper_executor = gripper_executor
        self._timeout = timeout

    def dispatch(
        self, arm_trajectory: JointTrajectory, gripper_trajectory: JointTrajectory
    ) -> ExecutionResult:
        logger.info(
            f"Executing arm trajectory: {len(arm_trajectory.points)} pts, "
            f"{arm_trajectory.duration:.1f}s"
        )
        arm_result = self._execute(self._arm_executor, arm_trajectory, "arm")
        if not arm_result.is_success():
            logger.error(f"Arm trajectory {arm_result.status.name}, gripper not sent")
            return arm_result

        gripper_result = self._execute(self._gripper_executor, gripper_trajectory, "gripper")
        if not gripper_result.is_success():
            logger.error(f"Gripper trajectory {gripper_result.status.name}")
        return gripper_result

    def _execute(
        self, executor: TrajectoryExecutorSpec, trajectory: JointTrajectory, label: str
    ) -> ExecutionResult:
        try:
            result = executor.execute(trajectory, timeout=self._timeout)
        except Exception as e:
            logger.error(f"{label} executor raised: {e}")
            return ExecutionResult(status=ExecutionStatus.FAILED, message=str(e))
        logger.debug(f"{label} trajectory finished: {result.status.name} {result.message}")
        return result


class PostureManager:
    """Issues the fixed home and init postures (arm first, then gripper)."""

    def __init__(self, config: ManipulatorModelConfig, dispatcher: TrajectoryDispatcher):
        self._config = config
        self._dispatcher = dispatcher

    def home_trajectories(self) -> tuple[JointTrajectory, JointTrajectory]:
        """Arm at the home pose without effort values, gripper closed."""
        arm = single_point_trajectory(
            self._config.joint_names, self._config.home_pose, POSTURE_ARM_TIME
        )
        gripper = gripper_trajectory(self._config, GRIPPER_CLOSED, POSTURE_GRIPPER_TIME)
        return arm, gripper

    def init_trajectories(self, object_secured: bool) -> tuple[JointTrajectory, JointTrajectory]:
        """Arm at the init pose; gripper partially open, or closed once an object is held."""
        arm = single_point_trajectory(
            self._config.joint_names, self._config.init_pose, POSTURE_ARM_TIME, effort=ARM_EFFORT
        )
        aperture = GRIPPER_CLOSED if object_secured else GRIPPER_PARTIAL_OPEN
        gripper = gripper_trajectory(self._config, aperture, POSTURE_GRIPPER_TIME)
        return arm, gripper

    def go_to_home(self) -> ExecutionResult:
        logger.info(f"Moving '{self._config.name}' to home posture")
        return self._dispatcher.dispatch(*self.home_trajectories())

    def go_to_init(self, object_secured: bool = False) -> ExecutionResult:
        """Move to the init posture.

        Args:
            object_secured: True once a grasp has succeeded; keeps the gripper closed
        """
        logger.info(
            f"Moving '{self._config.name}' to init posture (object_secured={object_secured})"
        )
        return self._dispatcher.dispatch(*self.init_trajectories(object_secured))
