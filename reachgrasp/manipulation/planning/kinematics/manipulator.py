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
Manipulator

Kinematics model of one arm plus its latest joint state. Implements
ManipulatorSpec for the run controller and the path converter.

Example:
    manipulator = Manipulator(jaco_config(), DHKinematics(...))
    manipulator.on_joint_state(msg)  # Called by the joint state subscriber
    pose = manipulator.solve_fk()
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from reachgrasp.msgs.sensor_msgs import JointState
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from reachgrasp.manipulation.planning.kinematics.dh_kinematics import DHKinematics
    from reachgrasp.manipulation.planning.spec import IKResult, ManipulatorModelConfig
    from reachgrasp.msgs.geometry_msgs import Pose

logger = setup_logger()


class Manipulator:
    """ManipulatorSpec backed by a DH kinematics model.

    ## Thread Safety

    on_joint_state() may be called from any thread; the stored state is
    replaced as a whole under a lock.
    """

    def __init__(self, config: ManipulatorModelConfig, kinematics: DHKinematics):
        if kinematics.num_joints != config.num_joints:
            raise ValueError(
                f"Kinematics has {kinematics.num_joints} joints, "
                f"'{config.name}' has {config.num_joints}"
            )
        self._config = config
        self._kinematics = kinematics
        self._lock = threading.Lock()
        self._joint_state: JointState | None = None

    @property
    def config(self) -> ManipulatorModelConfig:
        return self._config

    @property
    def kinematics(self) -> DHKinematics:
        return self._kinematics

    def on_joint_state(self, msg: JointState) -> None:
        """Merge an incoming joint state into the stored one.

        Messages may cover only the arm or only the fingers; joints missing
        from `msg` keep their previous values.
        """
        with self._lock:
            merged = dict(
                zip(self._joint_state.name, self._joint_state.position, strict=False)
                if self._joint_state is not None
                else ()
            )
            merged.update(zip(msg.name, msg.position, strict=False))
            self._joint_state = JointState(
                name=list(merged.keys()),
                position=[float(v) for v in merged.values()],
                ts=msg.ts,
            )

    def get_current_joint_state(self) -> JointState | None:
        with self._lock:
            return self._joint_state

    def current_arm_positions(self) -> list[float] | None:
        """Arm joint positions in config order, or None if any is unknown."""
        state = self.get_current_joint_state()
        if state is None:
            return None
        return state.positions_for(list(self._config.joint_names))

    def solve_fk(self, joint_positions: Sequence[float] | None = None) -> Pose:
        """End-effector pose at `joint_positions`, or at the current state if None."""
        if joint_positions is None:
            joint_positions = self.current_arm_positions()
            if joint_positions is None:
                raise ValueError(f"No joint state received yet for '{self._config.name}'")
        return self._kinematics.solve_fk(joint_positions)

    def solve_ik(self, pose: Pose, seed: Sequence[float]) -> IKResult:
        result = self._kinematics.solve_ik(pose, seed)
        if not result.is_success():
            logger.debug(f"IK failed for '{self._config.name}': {result.message}")
        return result
