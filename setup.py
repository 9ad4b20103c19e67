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

from setuptools import find_packages, setup

setup(
    name="reachgrasp",
    version="0.1.0",
    description="Collision-aware reach-and-grasp orchestration for a tabletop manipulator",
    python_requires=">=3.10",
    packages=find_packages(include=["reachgrasp", "reachgrasp.*"]),
    package_dir={"": "."},
    package_data={"reachgrasp": ["simulation/scenes/*.json"]},
    install_requires=[
        "numpy>=1.26",
        "structlog>=24.1",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "typer>=0.12",
        "reactivex>=4.0",
        "plum-dispatch>=2.3",
        "rich>=13.7",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "reachgrasp=reachgrasp.robot.cli.reach_robot:main",
        ],
    },
)
