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
Path To Trajectory

Turns a planned Cartesian path into a position-commanded arm trajectory by
solving IK at every waypoint, and builds the single-point trajectories used for
the gripper and for posture resets.

IK is chained: the first retained waypoint is seeded with the manipulator's
init posture, every later one with the previous solution. The first waypoint of
the path is the start pose and is not commanded.

Example:
    converter = PathToTrajectory(manipulator)
    conversion = converter.convert(result.path, cancel_token=shutdown)
    if conversion.is_success():
        executor.execute(conversion.trajectory)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import ConversionStatus, TrajectoryConversion
from reachgrasp.msgs.trajectory_msgs import JointTrajectory, TrajectoryPoint
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    import threading

    from reachgrasp.manipulation.planning.spec import ManipulatorModelConfig, ManipulatorSpec
    from reachgrasp.msgs.geometry_msgs import Pose

logger = setup_logger()

ARM_BASE_TIME = 5.0
ARM_TIME_STEP = 2.0
MIN_TIME_STEP = 1.0
ARM_EFFORT = 1000.0

GRIPPER_CLOSED = 0.95
GRIPPER_PARTIAL_OPEN = 0.4
GRIPPER_EFFORT = 5.0
GRIPPER_GRASP_TIME = 2.0


def single_point_trajectory(
    joint_names: Sequence[str],
    positions: Sequence[float],
    time_from_start: float,
    effort: float | None = None,
) -> JointTrajectory:
    """One-point trajectory; effort is omitted when None."""
    n = len(joint_names)
    point = TrajectoryPoint(
        positions=[float(p) for p in positions],
        effort=[effort] * n if effort is not None else [],
        time_from_start=time_from_start,
    )
    return JointTrajectory(joint_names=list(joint_names), points=[point])


def gripper_trajectory(
    config: ManipulatorModelConfig,
    aperture: float = GRIPPER_CLOSED,
    time_from_start: float = GRIPPER_GRASP_TIME,
) -> JointTrajectory:
    """Drive every finger joint to `aperture` with the gripper effort."""
    return single_point_trajectory(
        config.finger_names,
        [aperture] * len(config.finger_names),
        time_from_start,
        effort=GRIPPER_EFFORT,
    )


class PathToTrajectory:
    """Converts a geometric path into a JointTrajectory via chained IK."""

    def __init__(
        self,
        manipulator: ManipulatorSpec,
        base_time: float = ARM_BASE_TIME,
        time_step: float = ARM_TIME_STEP,
        effort: float = ARM_EFFORT,
    ):
        if time_step < MIN_TIME_STEP:
            raise ValueError(f"time_step must be at least {MIN_TIME_STEP}s, got {time_step}")
        self._manipulator = manipulator
        self._base_time = base_time
        self._time_step = time_step
        self._effort = effort

    def convert(
        self,
        path: Sequence[Pose],
        cancel_token: threading.Event | None = None,
    ) -> TrajectoryConversion:
        """Solve IK for every waypoint after the first.

        Stops at the first IK failure and reports the index of that waypoint
        among the retained ones. A set `cancel_token` is honoured between
        consecutive solves.

        Args:
            path: Waypoints; path[0] is the start pose
            cancel_token: Shutdown signal checked before each solve

        Returns:
            TrajectoryConversion holding one point per retained waypoint
        """
        config = self._manipulator.config
        retained = list(path[1:])
        if not retained:
            return TrajectoryConversion(
                status=ConversionStatus.EMPTY_PATH,
                message=f"Path of {len(path)} waypoint(s) has nothing to command",
            )

        n = config.num_joints
        seed: Sequence[float] = config.init_pose
        points: list[TrajectoryPoint] = []

        for i, waypoint in enumerate(retained):
            if cancel_token is not None and cancel_token.is_set():
                logger.info(f"Trajectory conversion cancelled at waypoint {i}/{len(retained)}")
                return TrajectoryConversion(
                    status=ConversionStatus.CANCELLED,
                    failed_index=i,
                    message="Shutdown requested during conversion",
                )

            result = self._manipulator.solve_ik(waypoint, seed)
            if not result.is_success():
                logger.warning(f"IK failed at waypoint {i}: {result.message}")
                return TrajectoryConversion(
                    status=ConversionStatus.IK_FAILURE,
                    failed_index=i,
                    message=f"IK failed at waypoint {i}: {result.message}",
                )

            seed = result.joint_positions  # type: ignore[assignment]
            points.append(
                TrajectoryPoint(
                    positions=list(seed),
                    velocities=[0.0] * n,
                    accelerations=[0.0] * n,
                    effort=[self._effort] * n,
                    time_from_start=self._base_time + i * self._time_step,
                )
            )

        trajectory = JointTrajectory(joint_names=list(config.joint_names), points=points)
        logger.debug(
            f"Converted {len(retained)} waypoints, duration {trajectory.duration:.1f}s"
        )
        return TrajectoryConversion(
            status=ConversionStatus.SUCCESS,
            trajectory=trajectory,
            message=f"{len(points)} trajectory points",
        )
