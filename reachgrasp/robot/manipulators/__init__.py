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

"""Manipulator model configs, looked up by model name."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reachgrasp.robot.manipulators.jaco.config import make_j2s7s300_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from reachgrasp.manipulation.planning.spec import ManipulatorModelConfig

MANIPULATOR_CONFIGS: dict[str, Callable[[], ManipulatorModelConfig]] = {
    "j2s7s300": make_j2s7s300_config,
}


def get_manipulator_config(name: str) -> ManipulatorModelConfig:
    """Config of a known manipulator model. Raises ValueError for unknown names."""
    if name not in MANIPULATOR_CONFIGS:
        raise ValueError(f"Unknown manipulator: {name}. Available: {sorted(MANIPULATOR_CONFIGS)}")
    return MANIPULATOR_CONFIGS[name]()


__all__ = ["MANIPULATOR_CONFIGS", "get_manipulator_config"]
