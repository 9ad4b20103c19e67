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

"""Command line entry point: run a reach-and-grasp session against the simulated scene."""

from __future__ import annotations

from dataclasses import dataclass
import inspect
import threading
import types
from typing import TYPE_CHECKING, Optional, Union, get_args, get_origin

from pydantic import ValidationError
import typer

from reachgrasp.core.global_config import GlobalConfig
from reachgrasp.manipulation.planning.factory import create_manipulator, create_planner
from reachgrasp.manipulation.planning.geometry_index import GeometryIndex
from reachgrasp.manipulation.planning.monitor import SceneMonitor
from reachgrasp.manipulation.posture_manager import PostureManager, TrajectoryDispatcher
from reachgrasp.manipulation.run_controller import RunController, RunOutcome
from reachgrasp.manipulation.visualization import LoggingMarkerSink
from reachgrasp.robot.manipulators import get_manipulator_config
from reachgrasp.simulation import SimulatedScene, SimulatedTrajectoryExecutor
from reachgrasp.utils.logging_config import setup_exception_handler, setup_logger

if TYPE_CHECKING:
    from reachgrasp.manipulation.planning.kinematics import Manipulator

logger = setup_logger()

main = typer.Typer()


def _unwrap_optional(annotation):  # type: ignore[no-untyped-def]
    """T for Optional[T] / T | None, else the annotation unchanged."""
    if get_origin(annotation) in (Union, types.UnionType):
        inner = [t for t in get_args(annotation) if t is not type(None)]
        if len(inner) == 1:
            return inner[0]
    return annotation


def create_dynamic_callback():  # type: ignore[no-untyped-def]
    params = [
        inspect.Parameter("ctx", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=typer.Context),
    ]

    # One --option per GlobalConfig field, None meaning "keep the env/default value"
    for field_name, field_info in GlobalConfig.model_fields.items():
        actual_type = _unwrap_optional(field_info.annotation)
        cli_option_name = field_name.replace("_", "-")

        if actual_type is bool:
            option = typer.Option(
                None,
                f"--{cli_option_name}/--no-{cli_option_name}",
                help=f"Override {field_name} in GlobalConfig",
            )
        else:
            option = typer.Option(
                None,
                f"--{cli_option_name}",
                help=f"Override {field_name} in GlobalConfig",
            )
        params.append(
            inspect.Parameter(
                field_name,
                inspect.Parameter.KEYWORD_ONLY,
                default=option,
                annotation=Optional[actual_type],  # noqa: UP045
            )
        )

    def callback(**kwargs) -> None:  # type: ignore[no-untyped-def]
        ctx = kwargs.pop("ctx")
        overrides = {k: v for k, v in kwargs.items() if v is not None}
        try:
            ctx.obj = GlobalConfig(**overrides)
        except ValidationError as e:
            raise typer.BadParameter(str(e)) from e

    callback.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]

    return callback


main.callback()(create_dynamic_callback())


@dataclass
class SimulatedBackend:
    """Everything one session needs, wired against the in-process simulation."""

    scene: SimulatedScene
    manipulator: Manipulator
    arm_executor: SimulatedTrajectoryExecutor
    gripper_executor: SimulatedTrajectoryExecutor
    scene_monitor: SceneMonitor
    postures: PostureManager
    controller: RunController
    shutdown: threading.Event


def build_backend(config: GlobalConfig) -> SimulatedBackend:
    """Load the scene and wire controller, postures and executors together."""
    model = get_manipulator_config(config.manipulator)
    scene = SimulatedScene.from_file(config.resolved_scene_file)
    manipulator = create_manipulator(model, max_iterations=500)

    arm_executor = SimulatedTrajectoryExecutor(
        manipulator.on_joint_state, model.joint_names, name="arm"
    )
    gripper_executor = SimulatedTrajectoryExecutor(
        manipulator.on_joint_state, model.finger_names, name="gripper"
    )
    dispatcher = TrajectoryDispatcher(
        arm_executor, gripper_executor, timeout=config.execution_timeout
    )
    postures = PostureManager(model, dispatcher)

    scene_monitor = SceneMonitor()
    scene_monitor.start()
    scene_monitor.attach(scene.states())

    shutdown = threading.Event()
    controller = RunController(
        manipulator=manipulator,
        scene_monitor=scene_monitor,
        geometry_index=GeometryIndex(scene),
        planner=create_planner("rrt_connect", ignored_names=(model.name,)),
        dispatcher=dispatcher,
        postures=postures,
        target_name=config.target,
        marker_sink=LoggingMarkerSink(),
        shutdown=shutdown,
        planning_timeout=config.planning_timeout,
        path_output_dir=config.path_output_dir,
    )
    return SimulatedBackend(
        scene=scene,
        manipulator=manipulator,
        arm_executor=arm_executor,
        gripper_executor=gripper_executor,
        scene_monitor=scene_monitor,
        postures=postures,
        controller=controller,
        shutdown=shutdown,
    )


def run_session(
    config: GlobalConfig,
    backend: SimulatedBackend,
    max_ticks: int | None = None,
) -> RunOutcome:
    """Reset to init, then pump the scene feed and tick the controller until done.

    Args:
        config: Resolved configuration
        backend: Wired collaborators
        max_ticks: Stop after this many ticks (unbounded if None)

    Returns:
        The terminal outcome, or the last outcome if max_ticks ran out
    """
    reset = backend.postures.go_to_init(object_secured=False)
    if not reset.is_success():
        logger.error(f"Init posture failed before the run: {reset.message}")
        return RunOutcome.EXECUTION_FAILED

    outcome = RunOutcome.IDLE
    ticks = 0
    try:
        while max_ticks is None or ticks < max_ticks:
            backend.scene.publish_state()
            outcome = backend.controller.run()
            ticks += 1
            if outcome.is_terminal:
                break
            backend.shutdown.wait(config.tick_period)
    except KeyboardInterrupt:
        logger.info("Interrupted, requesting shutdown")
        backend.controller.request_shutdown()
        outcome = RunOutcome.CANCELLED
    finally:
        backend.scene_monitor.stop()

    logger.info(f"Session finished after {ticks} ticks: {outcome.value}")
    return outcome


@main.command()
def run(
    ctx: typer.Context,
    max_ticks: Optional[int] = typer.Option(  # noqa: UP045
        None, "--max-ticks", help="Give up after this many run-loop ticks"
    ),
) -> None:
    """Reach for and grasp the configured target."""
    config: GlobalConfig = ctx.obj
    setup_exception_handler()

    if config.confirm_start and not typer.confirm(
        f"Run against target '{config.target}'?", default=True
    ):
        typer.echo("Aborted.")
        raise typer.Exit(code=0)

    outcome = run_session(config, build_backend(config), max_ticks=max_ticks)
    typer.echo(f"Outcome: {outcome.value}")
    raise typer.Exit(code=1 if outcome.is_fatal or not outcome.is_terminal else 0)


@main.command()
def home(ctx: typer.Context) -> None:
    """Move the arm to the home posture."""
    config: GlobalConfig = ctx.obj
    result = build_backend(config).controller.go_to_home()
    typer.echo(f"Home: {result.status.name}")
    raise typer.Exit(code=0 if result.is_success() else 1)


@main.command()
def init(ctx: typer.Context) -> None:
    """Move the arm to the init posture."""
    config: GlobalConfig = ctx.obj
    result = build_backend(config).controller.go_to_init()
    typer.echo(f"Init: {result.status.name}")
    raise typer.Exit(code=0 if result.is_success() else 1)


@main.command()
def show_config(ctx: typer.Context) -> None:
    """Show current configuration status."""
    config: GlobalConfig = ctx.obj

    for field_name, value in config.model_dump().items():
        typer.echo(f"{field_name}: {value}")
    typer.echo(f"resolved_scene_file: {config.resolved_scene_file}")


if __name__ == "__main__":
    main()
