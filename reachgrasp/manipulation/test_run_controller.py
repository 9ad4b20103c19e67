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

"""Unit tests for the RunController state machine."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from reachgrasp.manipulation import (
    PostureManager,
    RunController,
    RunOutcome,
    RunState,
    TrajectoryDispatcher,
)
from reachgrasp.manipulation.planning.monitor import SceneMonitor
from reachgrasp.manipulation.planning.spec import (
    CollisionGeometry,
    ExecutionResult,
    ExecutionStatus,
    IKResult,
    IKStatus,
    ManipulatorModelConfig,
    PlanningResult,
    PlanningStatus,
)
from reachgrasp.manipulation.visualization import LoggingMarkerSink
from reachgrasp.msgs.geometry_msgs import Pose, Quaternion, Vector3
from reachgrasp.msgs.scene_msgs import SceneState
from reachgrasp.msgs.sensor_msgs import JointState

# =============================================================================
# Fixtures
# =============================================================================

CAN_CENTRE = Vector3(0.485, 0.185, 0.06)
DOWN = Quaternion(1.0, 0.0, 0.0, 0.0)


@pytest.fixture
def arm_config():
    return ManipulatorModelConfig(
        name="arm",
        joint_names=("arm_joint_1", "arm_joint_2", "arm_joint_3"),
        finger_names=("arm_joint_finger_1", "arm_joint_finger_2", "arm_joint_finger_3"),
        home_pose=(0.0, -0.35, 2.5),
        init_pose=(0.0, 0.4, 1.5),
    )


@pytest.fixture
def manipulator(arm_config):
    manipulator = MagicMock()
    manipulator.config = arm_config
    manipulator.get_current_joint_state.return_value = JointState(
        name=list(arm_config.joint_names), position=list(arm_config.init_pose)
    )
    manipulator.solve_fk.return_value = Pose(Vector3(0.454, 0.0098, 0.289), DOWN)
    manipulator.solve_ik.return_value = IKResult(
        status=IKStatus.SUCCESS, joint_positions=[0.1, 0.2, 0.3]
    )
    return manipulator


@pytest.fixture
def scene_monitor():
    monitor = SceneMonitor()
    monitor.start()
    monitor.on_scene_state(SceneState(entity_names=["table", "coke_can", "arm"]))
    yield monitor
    monitor.stop()


def _geometry(name: str, centre: Vector3) -> CollisionGeometry:
    half = Vector3(0.035, 0.035, 0.06)
    return CollisionGeometry(
        name=name, min=centre - half, max=centre + half, centre=centre, dimensions=half * 2
    )


@pytest.fixture
def geometry_index():
    index = MagicMock()
    index.aggregate.return_value = [
        _geometry("table_surface", Vector3(0.65, 0.0, -0.015)),
        _geometry("coke_can_collision", CAN_CENTRE),
    ]
    return index


def _path(n: int) -> list[Pose]:
    start = Vector3(0.454, 0.0098, 0.289)
    return [Pose(start + (CAN_CENTRE - start) * (i / (n - 1)), DOWN) for i in range(n)]


def _plan_success(n: int = 4) -> PlanningResult:
    return PlanningResult(status=PlanningStatus.SUCCESS, path=_path(n), message="Path found")


@pytest.fixture
def planner():
    planner = MagicMock()
    planner.get_name.return_value = "MockPlanner"
    planner.plan.return_value = _plan_success()
    return planner


@pytest.fixture
def executions():
    """Ordered (executor label, trajectory) log shared by both executors."""
    return []


def _executor(label: str, log: list) -> MagicMock:
    executor = MagicMock()

    def execute(trajectory, timeout=60.0):
        log.append((label, trajectory))
        return ExecutionResult(status=ExecutionStatus.SUCCEEDED)

    executor.execute.side_effect = execute
    return executor


@pytest.fixture
def arm_executor(executions):
    return _executor("arm", executions)


@pytest.fixture
def gripper_executor(executions):
    return _executor("gripper", executions)


@pytest.fixture
def make_controller(
    arm_config, manipulator, scene_monitor, geometry_index, planner, arm_executor, gripper_executor
):
    def _make(**kwargs):
        dispatcher = TrajectoryDispatcher(arm_executor, gripper_executor)
        postures = PostureManager(arm_config, dispatcher)
        return RunController(
            manipulator,
            scene_monitor,
            geometry_index,
            planner,
            dispatcher,
            postures,
            kwargs.pop("target_name", "coke_can"),
            **kwargs,
        )

    return _make


# =============================================================================
# Preconditions
# =============================================================================


class TestPreconditions:
    def test_no_scene_snapshot_is_idle(self, make_controller, planner):
        controller = make_controller()
        controller._scene_monitor = SceneMonitor()

        assert controller.run() == RunOutcome.IDLE
        assert controller.state == RunState.IDLE
        planner.plan.assert_not_called()

    def test_no_joint_state_is_idle(self, make_controller, manipulator, geometry_index):
        manipulator.get_current_joint_state.return_value = None
        controller = make_controller()

        assert controller.run() == RunOutcome.IDLE
        geometry_index.aggregate.assert_not_called()

    def test_finger_only_joint_state_is_idle(
        self, make_controller, manipulator, arm_config, geometry_index, planner
    ):
        manipulator.get_current_joint_state.return_value = JointState(
            name=list(arm_config.finger_names), position=[0.4, 0.4, 0.4]
        )
        controller = make_controller()

        assert controller.run() == RunOutcome.IDLE
        geometry_index.aggregate.assert_not_called()
        manipulator.solve_fk.assert_not_called()
        planner.plan.assert_not_called()

    def test_shutdown_before_tick_is_cancelled(self, make_controller, geometry_index):
        shutdown = threading.Event()
        shutdown.set()
        controller = make_controller(shutdown=shutdown)

        assert controller.run() == RunOutcome.CANCELLED
        geometry_index.aggregate.assert_not_called()


# =============================================================================
# Successful session
# =============================================================================


class TestSolvedSession:
    def test_single_tick_solves(self, make_controller, executions):
        controller = make_controller()

        outcome = controller.run()

        assert outcome == RunOutcome.SOLVED
        assert outcome.is_terminal and not outcome.is_fatal
        assert controller.state == RunState.DONE
        assert controller.session.solved
        assert controller.shutdown.is_set()
        assert controller.get_error() == ""

    def test_dispatch_order_and_payloads(self, make_controller, arm_config, executions):
        make_controller().run()

        labels = [label for label, _ in executions]
        assert labels == ["arm", "gripper", "arm", "gripper"]

        grasp_arm, grasp_gripper = executions[0][1], executions[1][1]
        assert grasp_arm.joint_names == list(arm_config.joint_names)
        assert [p.time_from_start for p in grasp_arm.points] == [5.0, 7.0, 9.0]
        assert grasp_gripper.points[0].positions == [0.95, 0.95, 0.95]
        assert grasp_gripper.points[0].time_from_start == 2.0

        # init posture afterwards keeps the gripper closed on the object
        init_arm, init_gripper = executions[2][1], executions[3][1]
        assert init_arm.points[0].positions == list(arm_config.init_pose)
        assert init_gripper.points[0].positions == [0.95, 0.95, 0.95]

    def test_planner_receives_goal_and_aggregated_geometries(
        self, make_controller, planner, geometry_index, arm_config
    ):
        make_controller(planning_timeout=2.5).run()

        geometry_index.aggregate.assert_called_once_with(("table", "coke_can", "arm"), arm_config)
        args, kwargs = planner.plan.call_args
        start, goal, target, obstacles = args
        assert goal == CAN_CENTRE
        assert target == "coke_can"
        assert obstacles == geometry_index.aggregate.return_value
        assert kwargs["timeout"] == 2.5

    def test_solved_session_is_idempotent(self, make_controller, planner, executions):
        controller = make_controller()
        controller.run()
        dispatched = len(executions)

        assert controller.run() == RunOutcome.IDLE
        assert controller.run() == RunOutcome.IDLE
        assert planner.plan.call_count == 1
        assert len(executions) == dispatched

    def test_markers_and_audit_file(self, make_controller, tmp_path):
        markers = LoggingMarkerSink()
        controller = make_controller(marker_sink=markers, path_output_dir=tmp_path)

        controller.run()

        goal, frame = markers.goal
        assert goal == CAN_CENTRE
        assert frame == "arm_link_base"
        assert len(markers.path[0]) == 4
        files = list(tmp_path.glob("path_coke_can_*.json"))
        assert len(files) == 1

    def test_unwritable_audit_dir_does_not_fail(self, make_controller, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        controller = make_controller(path_output_dir=blocker / "paths")

        assert controller.run() == RunOutcome.SOLVED


# =============================================================================
# Retry and failure paths
# =============================================================================


class TestFailures:
    def test_target_not_found_is_fatal_and_sticky(self, make_controller, geometry_index, planner):
        geometry_index.aggregate.return_value = [
            _geometry("table_surface", Vector3(0.65, 0.0, -0.015))
        ]
        controller = make_controller()

        assert controller.run() == RunOutcome.TARGET_NOT_FOUND
        assert controller.state == RunState.FAULT
        assert "coke_can" in controller.get_error()
        planner.plan.assert_not_called()

        assert controller.run() == RunOutcome.TARGET_NOT_FOUND
        assert geometry_index.aggregate.call_count == 1

    def test_no_path_retries_next_tick(self, make_controller, planner, executions):
        """First tick has no valid path, the second one succeeds."""
        planner.plan.side_effect = [
            PlanningResult(status=PlanningStatus.TIMEOUT, message="Timeout"),
            _plan_success(),
        ]
        controller = make_controller()

        first = controller.run()
        assert first == RunOutcome.RETRY
        assert not first.is_terminal
        assert controller.state == RunState.IDLE
        assert executions == []

        assert controller.run() == RunOutcome.SOLVED
        assert planner.plan.call_count == 2

    def test_ik_failure_mid_path(self, make_controller, manipulator, executions):
        manipulator.solve_ik.side_effect = [
            IKResult(status=IKStatus.SUCCESS, joint_positions=[0.1, 0.2, 0.3]),
            IKResult(status=IKStatus.SUCCESS, joint_positions=[0.1, 0.2, 0.3]),
            IKResult(status=IKStatus.NO_SOLUTION, message="Did not converge"),
        ]
        controller = make_controller()

        outcome = controller.run()

        assert outcome == RunOutcome.IK_FAILURE
        assert outcome.is_fatal
        assert controller.state == RunState.FAULT
        assert "waypoint 2" in controller.get_error()
        assert executions == []
        assert not controller.session.solved

    def test_two_waypoint_path_has_one_point(self, make_controller, planner, executions):
        planner.plan.return_value = _plan_success(2)
        make_controller().run()

        assert len(executions[0][1].points) == 1
        assert executions[0][1].points[0].time_from_start == 5.0

    def test_single_waypoint_path_retries(self, make_controller, planner):
        planner.plan.return_value = _plan_success(2)
        planner.plan.return_value.path = planner.plan.return_value.path[:1]

        assert make_controller().run() == RunOutcome.RETRY

    def test_arm_failure_skips_gripper(self, make_controller, arm_executor, executions):
        arm_executor.execute.side_effect = lambda trajectory, timeout=60.0: ExecutionResult(
            status=ExecutionStatus.FAILED, message="controller rejected goal"
        )
        controller = make_controller()

        assert controller.run() == RunOutcome.EXECUTION_FAILED
        assert controller.state == RunState.FAULT
        assert "FAILED" in controller.get_error()
        assert executions == []
        assert not controller.shutdown.is_set()

    def test_gripper_failure_is_execution_failure(self, make_controller, gripper_executor):
        gripper_executor.execute.side_effect = lambda trajectory, timeout=60.0: ExecutionResult(
            status=ExecutionStatus.TIMEOUT
        )
        assert make_controller().run() == RunOutcome.EXECUTION_FAILED

    def test_init_failure_after_grasp_still_solves(self, make_controller, arm_executor, executions):
        results = iter(
            [
                ExecutionResult(status=ExecutionStatus.SUCCEEDED),
                ExecutionResult(status=ExecutionStatus.FAILED, message="blocked"),
            ]
        )
        arm_executor.execute.side_effect = lambda trajectory, timeout=60.0: next(results)

        controller = make_controller()
        assert controller.run() == RunOutcome.SOLVED
        assert controller.session.solved

    def test_shutdown_during_conversion(self, make_controller, manipulator, executions):
        controller = make_controller()

        def solve_and_interrupt(pose, seed):
            controller.request_shutdown()
            return IKResult(status=IKStatus.SUCCESS, joint_positions=[0.1, 0.2, 0.3])

        manipulator.solve_ik.side_effect = solve_and_interrupt

        assert controller.run() == RunOutcome.CANCELLED
        assert controller.state == RunState.IDLE
        assert executions == []


# =============================================================================
# Manual posture resets
# =============================================================================


class TestManualPostures:
    def test_go_to_init_opens_gripper_before_grasp(self, make_controller, executions):
        controller = make_controller()
        assert controller.go_to_init().is_success()
        assert executions[1][1].points[0].positions == [0.4, 0.4, 0.4]

    def test_go_to_init_keeps_gripper_closed_after_grasp(self, make_controller, executions):
        controller = make_controller()
        controller.run()
        executions.clear()

        controller.go_to_init()
        assert executions[1][1].points[0].positions == [0.95, 0.95, 0.95]

    def test_go_to_home(self, make_controller, arm_config, executions):
        assert make_controller().go_to_home().is_success()
        arm = executions[0][1]
        assert arm.points[0].positions == list(arm_config.home_pose)
        assert arm.points[0].effort == []
