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

"""Kinova Jaco2 7-DoF spherical-wrist arm with the 3-finger gripper (j2s7s300)."""

from __future__ import annotations

import math

from reachgrasp.manipulation.planning.spec import ManipulatorModelConfig

# Link lengths (meters) from the Jaco2 7-DoF spherical wrist datasheet
D1 = 0.2755  # base to shoulder
D2 = 0.2050  # first half upper arm
D3 = 0.2050  # second half upper arm
D4 = 0.2073  # first half forearm
D5 = 0.1038  # second half forearm
D6 = 0.1038  # wrist to wrist
D7 = 0.1600  # wrist to center of the hand
E2 = 0.0098  # elbow joint offset

# Alternating-twist DH table, zero configuration is the arm pointing straight
# up; rows are (alpha, a, d, theta_offset). Approximates the real chain.
J2S7S300_DH: tuple[tuple[float, float, float, float], ...] = (
    (-math.pi / 2, 0.0, D1, 0.0),
    (math.pi / 2, 0.0, 0.0, 0.0),
    (-math.pi / 2, 0.0, D2 + D3, 0.0),
    (math.pi / 2, 0.0, E2, 0.0),
    (-math.pi / 2, 0.0, D4 + D5, 0.0),
    (math.pi / 2, 0.0, 0.0, 0.0),
    (0.0, 0.0, D6 + D7, 0.0),
)

# Continuous joints are bounded to one turn either way
J2S7S300_LOWER = (-2 * math.pi, -2.2, -2 * math.pi, -2.6, -2 * math.pi, -2.6, -2 * math.pi)
J2S7S300_UPPER = (2 * math.pi, 2.2, 2 * math.pi, 2.6, 2 * math.pi, 2.6, 2 * math.pi)

# Folded over the base
J2S7S300_HOME = (0.0, -0.35, 0.0, 2.5, 0.0, 0.9, 0.0)

# Hand above the table in front of the base, fingers pointing down
J2S7S300_INIT = (0.0, 0.4, 0.0, 1.5, 0.0, math.pi - 1.9, 0.0)


def make_j2s7s300_config(name: str = "j2s7s300") -> ManipulatorModelConfig:
    """Create the Jaco2 7-DoF config.

    Args:
        name: Identity name; prefixes every joint, link and frame name
    """
    return ManipulatorModelConfig(
        name=name,
        joint_names=tuple(f"{name}_joint_{i}" for i in range(1, 8)),
        finger_names=tuple(f"{name}_joint_finger_{i}" for i in range(1, 4)),
        home_pose=J2S7S300_HOME,
        init_pose=J2S7S300_INIT,
        dh_parameters=J2S7S300_DH,
        joint_limits_lower=J2S7S300_LOWER,
        joint_limits_upper=J2S7S300_UPPER,
        num_finger_links=3,
    )
