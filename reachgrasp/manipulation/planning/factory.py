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

"""Factory functions for manipulation planning components."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from reachgrasp.manipulation.planning.kinematics import DHKinematics, Manipulator
    from reachgrasp.manipulation.planning.spec import ManipulatorModelConfig, PlannerSpec


def create_kinematics(
    config: ManipulatorModelConfig,
    name: str = "dh",
    **kwargs: Any,
) -> DHKinematics:
    """Create a kinematics model for `config`. name='dh'."""
    if name == "dh":
        from reachgrasp.manipulation.planning.kinematics import DHKinematics

        return DHKinematics(
            config.dh_parameters,
            joint_limits_lower=config.joint_limits_lower,
            joint_limits_upper=config.joint_limits_upper,
            **kwargs,
        )
    else:
        raise ValueError(f"Unknown kinematics model: {name}. Available: ['dh']")


def create_manipulator(
    config: ManipulatorModelConfig,
    kinematics_name: str = "dh",
    **kwargs: Any,
) -> Manipulator:
    """Create a ManipulatorSpec implementation for `config`."""
    from reachgrasp.manipulation.planning.kinematics import Manipulator

    return Manipulator(config, create_kinematics(config, name=kinematics_name, **kwargs))


def create_planner(
    name: str = "rrt_connect",
    **kwargs: Any,
) -> PlannerSpec:
    """Create motion planner. name='rrt_connect'."""
    if name == "rrt_connect":
        from reachgrasp.manipulation.planning.planners import RRTConnectPlanner

        return RRTConnectPlanner(**kwargs)
    else:
        raise ValueError(f"Unknown planner: {name}. Available: ['rrt_connect']")
