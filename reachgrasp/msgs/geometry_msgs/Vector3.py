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

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeAlias

import numpy as np
from plum import dispatch

# Types that can be converted to/from Vector3
VectorConvertable: TypeAlias = Sequence[int | float] | np.ndarray


class Vector3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    msg_name = "geometry_msgs.Vector3"

    @dispatch
    def __init__(self) -> None:
        """Initialize a zero vector."""
        self.x, self.y, self.z = 0.0, 0.0, 0.0

    @dispatch
    def __init__(self, x: int | float, y: int | float, z: int | float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    @dispatch
    def __init__(self, sequence: Sequence[int | float] | np.ndarray) -> None:
        if len(sequence) != 3:
            raise ValueError("Vector3 requires exactly 3 components [x, y, z]")
        self.x, self.y, self.z = (float(v) for v in sequence)

    @dispatch
    def __init__(self, vector: Vector3) -> None:
        """Initialize from another Vector3 (copy constructor)."""
        self.x, self.y, self.z = vector.x, vector.y, vector.z

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z]

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def length(self) -> float:
        return float(np.linalg.norm(self.to_numpy()))

    def distance(self, other: Vector3) -> float:
        return float(np.linalg.norm(self.to_numpy() - other.to_numpy()))

    def is_close(self, other: Vector3, tolerance: float = 1e-9) -> bool:
        return bool(np.allclose(self.to_numpy(), other.to_numpy(), atol=tolerance))

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __getitem__(self, idx: int) -> float:
        return self.to_tuple()[idx]

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self.to_tuple())

    def __len__(self) -> int:
        return 3

    def __repr__(self) -> str:
        return f"Vector3({self.x:.6f}, {self.y:.6f}, {self.z:.6f})"

    def __eq__(self, other) -> bool:  # type: ignore[no-untyped-def]
        if not isinstance(other, Vector3):
            return False
        return self.x == other.x and self.y == other.y and self.z == other.z

    def __hash__(self) -> int:
        return hash(self.to_tuple())
