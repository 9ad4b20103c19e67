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

import pytest

from reachgrasp.msgs.sensor_msgs import JointState
from reachgrasp.msgs.trajectory_msgs import JointTrajectory, TrajectoryPoint


@pytest.fixture
def joint_names():
    return ["j1", "j2", "j3"]


def _point(t: float, n: int = 3) -> TrajectoryPoint:
    return TrajectoryPoint(
        positions=[0.1] * n,
        velocities=[0.0] * n,
        accelerations=[0.0] * n,
        effort=[1000.0] * n,
        time_from_start=t,
    )


class TestJointTrajectory:
    def test_valid_trajectory(self, joint_names):
        traj = JointTrajectory(joint_names=joint_names, points=[_point(5.0), _point(7.0)])
        assert traj.is_valid()
        assert traj.validate() == []
        assert traj.duration == 7.0

    def test_empty_trajectory_is_invalid(self, joint_names):
        traj = JointTrajectory(joint_names=joint_names)
        assert not traj.is_valid()
        assert traj.duration == 0.0

    def test_time_must_strictly_increase(self, joint_names):
        traj = JointTrajectory(joint_names=joint_names, points=[_point(5.0), _point(5.0)])
        problems = traj.validate()
        assert len(problems) == 1
        assert "not increasing" in problems[0]

    def test_length_mismatch(self, joint_names):
        traj = JointTrajectory(joint_names=joint_names, points=[_point(5.0, n=2)])
        problems = traj.validate()
        # positions, velocities, accelerations and effort all disagree
        assert len(problems) == 4

    def test_optional_arrays_may_be_empty(self, joint_names):
        point = TrajectoryPoint(positions=[0.0, 0.0, 0.0], time_from_start=5.0)
        assert JointTrajectory(joint_names=joint_names, points=[point]).is_valid()


class TestJointState:
    def test_positions_for_reorders(self):
        state = JointState(name=["b", "a", "c"], position=[2.0, 1.0, 3.0])
        assert state.positions_for(["a", "b", "c"]) == [1.0, 2.0, 3.0]

    def test_positions_for_missing_joint(self):
        state = JointState(name=["a"], position=[1.0])
        assert state.positions_for(["a", "b"]) is None
