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

from functools import cached_property
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from reachgrasp.constants import BUNDLED_SCENES_DIR, DEFAULT_TARGET


class GlobalConfig(BaseSettings):
    target: str = DEFAULT_TARGET
    manipulator: str = "j2s7s300"
    scene_file: Path | None = None
    tick_rate_hz: float = Field(default=10.0, gt=0.0)
    planning_timeout: float = Field(default=5.0, gt=0.0)
    execution_timeout: float = Field(default=60.0, gt=0.0)
    path_output_dir: Path | None = None
    confirm_start: bool = True

    model_config = SettingsConfigDict(
        env_prefix="REACHGRASP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @cached_property
    def resolved_scene_file(self) -> Path:
        if self.scene_file is not None:
            return self.scene_file
        return BUNDLED_SCENES_DIR / "tabletop.json"

    @property
    def tick_period(self) -> float:
        return 1.0 / self.tick_rate_hz
