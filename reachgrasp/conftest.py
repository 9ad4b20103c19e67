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

import threading

import pytest

from reachgrasp.constants import BUNDLED_SCENES_DIR
from reachgrasp.robot.manipulators.jaco.config import make_j2s7s300_config
from reachgrasp.simulation import SimulatedScene

_seen_threads = set()
_seen_threads_lock = threading.RLock()

_skip_for = ["threads"]


def pytest_configure(config):
    config.addinivalue_line("markers", "threads: test may leave background threads running")


@pytest.fixture(autouse=True)
def monitor_threads(request):
    # Skip monitoring for tests marked with specified markers
    if any(request.node.get_closest_marker(marker) for marker in _skip_for):
        yield
        return

    yield

    threads = [t for t in threading.enumerate() if t is not threading.main_thread()]

    if not threads:
        return

    with _seen_threads_lock:
        new_leaks = [t for t in threads if t.ident not in _seen_threads]
        for t in threads:
            _seen_threads.add(t.ident)

    if not new_leaks:
        return

    pytest.fail(
        f"Non-closed threads before or during this test: {[t.name for t in new_leaks]}. "
        "Look at the first test that fails and fix that."
    )


@pytest.fixture
def jaco_config():
    """The bundled Jaco2 7-DoF model config."""
    return make_j2s7s300_config()


@pytest.fixture
def tabletop_scene():
    """Simulated scene loaded from the bundled tabletop description."""
    return SimulatedScene.from_file(BUNDLED_SCENES_DIR / "tabletop.json")
