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
Run Controller

Single-shot reach-and-grasp state machine. run() is ticked repeatedly by the
top-level loop; each tick either does nothing, retries later, or carries the
session through aggregate -> resolve -> plan -> convert -> execute to DONE.

Every stage returns a result that is inspected before the next one proceeds.
Fatal outcomes put the controller into FAULT; the top-level runner decides
whether the process exits.

Example:
    controller = RunController(manipulator, scene_monitor, geometry_index,
                               planner, dispatcher, postures, "coke_can")
    while not (outcome := controller.run()).is_terminal:
        time.sleep(0.1)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import threading
from typing import TYPE_CHECKING

from reachgrasp.manipulation.planning.spec import ConversionStatus
from reachgrasp.manipulation.planning.target_resolver import resolve_target
from reachgrasp.manipulation.planning.trajectory.path_to_trajectory import (
    PathToTrajectory,
    gripper_trajectory,
)
from reachgrasp.manipulation.planning.utils.path_utils import path_positions, save_path
from reachgrasp.manipulation.visualization import NullMarkerSink
from reachgrasp.utils.logging_config import setup_logger

if TYPE_CHECKING:
    from pathlib import Path

    from reachgrasp.manipulation.planning.geometry_index import GeometryIndex
    from reachgrasp.manipulation.planning.monitor import SceneMonitor
    from reachgrasp.manipulation.planning.spec import (
        CollisionGeometry,
        ExecutionResult,
        GeometricPath,
        ManipulatorSpec,
        MarkerSinkSpec,
        PlannerSpec,
    )
    from reachgrasp.manipulation.posture_manager import PostureManager, TrajectoryDispatcher

logger = setup_logger()


class RunState(Enum):
    """State machine for the reach-and-grasp session."""

    IDLE = 0
    PLANNING = 1
    EXECUTING = 2
    DONE = 3
    FAULT = 4


class RunOutcome(Enum):
    """Result of one run() tick."""

    IDLE = "idle"
    RETRY = "retry"
    SOLVED = "solved"
    TARGET_NOT_FOUND = "target_not_found"
    IK_FAILURE = "ik_failure"
    EXECUTION_FAILED = "execution_failed"
    CANCELLED = "cancelled"

    @property
    def is_fatal(self) -> bool:
        return self in (
            RunOutcome.TARGET_NOT_FOUND,
            RunOutcome.IK_FAILURE,
            RunOutcome.EXECUTION_FAILED,
        )

    @property
    def is_terminal(self) -> bool:
        """True if the top-level loop should stop ticking."""
        return self.is_fatal or self in (RunOutcome.SOLVED, RunOutcome.CANCELLED)


@dataclass
class RunSession:
    """The one mutable session of the process, owned by RunController.

    Attributes:
        target_name: Identifier (substring) of the object to grasp
        solved: Set once, after the grasp trajectory executed successfully
        last_geometries: Geometries aggregated on the most recent planning tick
    """

    target_name: str
    solved: bool = False
    last_geometries: list[CollisionGeometry] = field(default_factory=list)


class RunController:
    """Orchestrates one reach-and-grasp session over its collaborators."""

    def __init__(
        self,
        manipulator: ManipulatorSpec,
        scene_monitor: SceneMonitor,
        geometry_index: GeometryIndex,
        planner: PlannerSpec,
        dispatcher: TrajectoryDispatcher,
        postures: PostureManager,
        target_name: str,
        marker_sink: MarkerSinkSpec | None = None,
        shutdown: threading.Event | None = None,
        planning_timeout: float = 5.0,
        path_output_dir: Path | None = None,
    ):
        """Create the controller.

        Args:
            manipulator: Kinematics model and current joint state
            scene_monitor: Source of the latest scene snapshot
            geometry_index: Aggregates collision geometry per snapshot
            planner: Collision-aware path planner
            dispatcher: Sequential arm/gripper trajectory dispatch
            postures: Home/init posture resets
            target_name: Object to reach, matched by substring
            marker_sink: Debug marker output (disabled if None)
            shutdown: Cancellation token, set when the process should stop
            planning_timeout: Seconds allowed per planner call
            path_output_dir: Directory for audited paths (disabled if None)
        """
        self._manipulator = manipulator
        self._scene_monitor = scene_monitor
        self._geometry_index = geometry_index
        self._planner = planner
        self._dispatcher = dispatcher
        self._postures = postures
        self._markers = marker_sink or NullMarkerSink()
        self._shutdown = shutdown or threading.Event()
        self._planning_timeout = planning_timeout
        self._path_output_dir = path_output_dir

        self._converter = PathToTrajectory(manipulator)
        self._session = RunSession(target_name=target_name)
        self._state = RunState.IDLE
        self._fault_outcome: RunOutcome | None = None
        self._error_message = ""

        logger.info(
            f"RunController ready: target='{target_name}', "
            f"manipulator='{manipulator.config.name}', planner={planner.get_name()}"
        )

    @property
    def session(self) -> RunSession:
        return self._session

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def shutdown(self) -> threading.Event:
        return self._shutdown

    def get_error(self) -> str:
        return self._error_message

    def request_shutdown(self) -> None:
        """Ask run() and any in-progress conversion to stop at the next check."""
        self._shutdown.set()

    def go_to_home(self) -> ExecutionResult:
        """Manual reset to the home posture, independent of the run loop."""
        return self._postures.go_to_home()

    def go_to_init(self) -> ExecutionResult:
        """Manual reset to the init posture; the gripper stays closed once solved."""
        return self._postures.go_to_init(object_secured=self._session.solved)

    def run(self) -> RunOutcome:
        """Advance the session by one tick."""
        if self._session.solved:
            logger.debug("Session already solved, nothing to do")
            return RunOutcome.IDLE
        if self._fault_outcome is not None:
            logger.debug(f"Session faulted earlier: {self._error_message}")
            return self._fault_outcome
        if self._shutdown.is_set():
            logger.info("Shutdown requested, not planning")
            return RunOutcome.CANCELLED

        snapshot = self._scene_monitor.get_snapshot()
        if snapshot is None:
            logger.debug("No scene state received yet")
            return RunOutcome.IDLE
        joint_state = self._manipulator.get_current_joint_state()
        if joint_state is None:
            logger.debug("No joint state received yet")
            return RunOutcome.IDLE

        config = self._manipulator.config
        if joint_state.positions_for(list(config.joint_names)) is None:
            logger.debug("No arm joint state received yet")
            return RunOutcome.IDLE
        target_name = self._session.target_name
        self._state = RunState.PLANNING
        self._markers.clear()

        geometries = self._geometry_index.aggregate(snapshot.names, config)
        self._session.last_geometries = geometries

        resolution = resolve_target(geometries, target_name)
        if not resolution.is_found():
            return self._fail(
                RunOutcome.TARGET_NOT_FOUND,
                f"Target '{target_name}' not found among {len(geometries)} geometries",
            )
        goal = resolution.goal
        assert goal is not None  # guaranteed by is_found()
        logger.info(f"Target '{target_name}' resolved to '{resolution.geometry_name}' at {goal}")
        self._markers.mark_goal(goal, config.base_frame)

        start = self._manipulator.solve_fk()
        result = self._planner.plan(
            start, goal, target_name, geometries, timeout=self._planning_timeout
        )
        if not result.is_success():
            logger.info(
                f"No valid path ({result.status.name}: {result.message}), retrying next tick"
            )
            self._state = RunState.IDLE
            return RunOutcome.RETRY

        logger.info(
            f"Path: {len(result.path)} waypoints, {result.path_length:.3f}m, "
            f"{result.planning_time:.2f}s"
        )
        self._audit_path(result.path)
        self._markers.mark_path(path_positions(result.path), config.base_frame)

        conversion = self._converter.convert(result.path, cancel_token=self._shutdown)
        if conversion.status == ConversionStatus.CANCELLED:
            self._state = RunState.IDLE
            return RunOutcome.CANCELLED
        if conversion.status == ConversionStatus.EMPTY_PATH:
            logger.warning(f"Planner path has nothing to command ({conversion.message}), retrying")
            self._state = RunState.IDLE
            return RunOutcome.RETRY
        if not conversion.is_success():
            return self._fail(RunOutcome.IK_FAILURE, conversion.message)
        trajectory = conversion.trajectory
        assert trajectory is not None  # guaranteed by is_success()

        self._state = RunState.EXECUTING
        execution = self._dispatcher.dispatch(trajectory, gripper_trajectory(config))
        if not execution.is_success():
            return self._fail(
                RunOutcome.EXECUTION_FAILED,
                f"Execution {execution.status.name}: {execution.message}",
            )

        self._session.solved = True
        self._state = RunState.DONE
        logger.info(f"Target '{target_name}' grasped")

        reset = self._postures.go_to_init(object_secured=True)
        if not reset.is_success():
            logger.warning(f"Init posture after grasp {reset.status.name}: {reset.message}")

        self._shutdown.set()
        return RunOutcome.SOLVED

    def _fail(self, outcome: RunOutcome, msg: str) -> RunOutcome:
        """Set FAULT state with error message."""
        logger.error(msg)
        self._state = RunState.FAULT
        self._error_message = msg
        self._fault_outcome = outcome
        return outcome

    def _audit_path(self, path: GeometricPath) -> None:
        if self._path_output_dir is None:
            return
        try:
            save_path(
                path,
                self._path_output_dir,
                self._session.target_name,
                self._manipulator.config.base_frame,
            )
        except OSError as e:
            logger.warning(f"Could not save path to {self._path_output_dir}: {e}")
