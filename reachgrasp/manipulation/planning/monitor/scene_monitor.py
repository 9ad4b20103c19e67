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
Scene Monitor

Keeps the most recent scene snapshot delivered by the scene-state feed.

Updates replace the snapshot atomically; readers get an immutable snapshot and
never observe a partially written entity list.

Example:
    monitor = SceneMonitor()
    monitor.start()
    monitor.attach(scene.states())  # or call on_scene_state() from a subscriber
    snapshot = monitor.get_snapshot()
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
from typing import TYPE_CHECKING

from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from reactivex.abc import DisposableBase
    from reactivex.observable import Observable

    from reachgrasp.msgs.scene_msgs import SceneState

logger = setup_logger()


@dataclass(frozen=True)
class SceneSnapshot:
    """Entity names present in the scene at the moment of the last update.

    Attributes:
        names: Entity names in feed order
        ts: Timestamp carried by the scene-state message
        sequence: Monotonic update counter of the owning monitor
    """

    names: tuple[str, ...]
    ts: float = 0.0
    sequence: int = 0

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: object) -> bool:
        return name in self.names


class SceneMonitor:
    """Holds the latest SceneSnapshot, fed by a scene-state subscription.

    ## Thread Safety

    on_scene_state() may be called from any thread. The snapshot reference is
    swapped under a lock, so get_snapshot() always returns one complete update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: SceneSnapshot | None = None
        self._sequence = 0
        self._running = False
        self._subscription: DisposableBase | None = None

    def start(self) -> None:
        """Start accepting scene-state updates."""
        self._running = True
        logger.info("Scene monitor started")

    def stop(self) -> None:
        """Stop accepting updates and drop the feed subscription, if any."""
        self._running = False
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        logger.info("Scene monitor stopped")

    def is_running(self) -> bool:
        return self._running

    def attach(self, states: Observable[SceneState]) -> DisposableBase:
        """Subscribe on_scene_state() to a scene-state stream."""
        if self._subscription is not None:
            self._subscription.dispose()
        self._subscription = states.subscribe(
            on_next=self.on_scene_state,
            on_error=lambda e: logger.error(f"Scene-state feed error: {e}"),
        )
        return self._subscription

    def on_scene_state(self, msg: SceneState) -> None:
        """Handle an incoming scene-state message.

        Args:
            msg: SceneState listing every entity currently in the scene
        """
        try:
            if not self._running:
                return

            with self._lock:
                self._sequence += 1
                self._snapshot = SceneSnapshot(
                    names=tuple(msg.entity_names),
                    ts=msg.ts,
                    sequence=self._sequence,
                )
        except Exception as e:
            logger.error(f"Unexpected exception in on_scene_state: {e}")

    def get_snapshot(self) -> SceneSnapshot | None:
        """Most recent snapshot, or None if no scene state has arrived yet."""
        with self._lock:
            return self._snapshot

    def has_snapshot(self) -> bool:
        return self.get_snapshot() is not None
