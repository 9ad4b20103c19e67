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

import numpy as np
import pytest

from reachgrasp.msgs.geometry_msgs import Pose, Quaternion, Vector3


def test_quaternion_default_init():
    """Default initialization is the identity rotation."""
    q = Quaternion()
    assert q.to_tuple() == (0.0, 0.0, 0.0, 1.0)
    assert np.allclose(q.to_rotation_matrix(), np.eye(3))


def test_quaternion_component_and_sequence_init():
    q = Quaternion(1, 2, 3, 4)
    assert q.to_tuple() == (1.0, 2.0, 3.0, 4.0)
    assert isinstance(q.x, float)

    assert Quaternion([0.1, 0.2, 0.3, 0.4]) == Quaternion(0.1, 0.2, 0.3, 0.4)
    assert Quaternion(np.array([0.0, 0.0, 0.0, 1.0])) == Quaternion()
    assert Quaternion(q) == q


def test_quaternion_sequence_wrong_length():
    with pytest.raises(ValueError):
        Quaternion([0.0, 0.0, 1.0])


def test_quaternion_normalized():
    q = Quaternion(0.0, 0.0, 0.0, 2.0).normalized()
    assert q.to_tuple() == pytest.approx((0.0, 0.0, 0.0, 1.0))

    # Degenerate input falls back to identity
    assert Quaternion(0.0, 0.0, 0.0, 0.0).normalized() == Quaternion()


def test_quaternion_euler_matrix_round_trip():
    euler = Vector3(0.1, -0.4, 1.2)
    q = Quaternion.from_euler(euler)
    back = q.to_euler()
    assert back.to_tuple() == pytest.approx(euler.to_tuple(), abs=1e-9)

    q2 = Quaternion.from_rotation_matrix(q.to_rotation_matrix())
    # q and -q are the same rotation
    sign = 1.0 if q2.w * q.w >= 0 else -1.0
    assert np.allclose(q2.to_numpy() * sign, q.to_numpy(), atol=1e-9)


def test_quaternion_half_turn_from_matrix():
    """Trace-negative branch: 180 degrees about x."""
    R = np.diag([1.0, -1.0, -1.0])
    q = Quaternion.from_rotation_matrix(R)
    assert abs(q.x) == pytest.approx(1.0)
    assert np.allclose(q.to_rotation_matrix(), R)


def test_quaternion_indexing():
    q = Quaternion(0.1, 0.2, 0.3, 0.4)
    assert [q[i] for i in range(4)] == [0.1, 0.2, 0.3, 0.4]
    with pytest.raises(IndexError):
        q[4]


def test_pose_constructors():
    assert Pose().position == Vector3()
    assert Pose(1, 2, 3).position == Vector3(1.0, 2.0, 3.0)
    assert Pose(1, 2, 3).orientation == Quaternion()

    pose = Pose([0.1, 0.2, 0.3], [0.0, 0.0, 0.0, 1.0])
    assert pose.x == 0.1 and pose.y == 0.2 and pose.z == 0.3
    assert Pose(pose) == pose
    assert Pose(pose.to_dict()) == pose


def test_pose_matrix_round_trip():
    orientation = Quaternion.from_euler(Vector3(0.3, 0.2, -0.5))
    pose = Pose(Vector3(0.4, -0.1, 0.9), orientation)
    T = pose.to_matrix()
    assert T.shape == (4, 4)
    assert np.allclose(T[:3, 3], [0.4, -0.1, 0.9])

    back = Pose.from_matrix(T)
    assert back.position.is_close(pose.position)
    assert np.allclose(back.to_matrix(), T, atol=1e-9)


def test_vector3_arithmetic():
    a = Vector3(1.0, 2.0, 3.0)
    b = Vector3([0.5, 0.5, 0.5])
    assert a + b == Vector3(1.5, 2.5, 3.5)
    assert a - b == Vector3(0.5, 1.5, 2.5)
    assert b * 2 == Vector3(1.0, 1.0, 1.0)
    assert Vector3(3.0, 4.0, 0.0).length() == pytest.approx(5.0)
    assert a.distance(a) == 0.0
    assert list(a) == [1.0, 2.0, 3.0]
    assert len(a) == 3
