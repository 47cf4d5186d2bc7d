"""
Scripted failover timeline.

The orchestrator walks a fixed list of DisruptionSteps: wait, then act.
Each wait starts when the previous action finishes. The schedule is blind:
it never checks whether the store actually recovered before moving on.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Tuple

import psutil

from .node_controller import DisruptionAnomaly, NodeController
from .state import SimulationState
from .stats import RunStats
from utils.error_messages import format_disruption_error


class StepAction(Enum):
    """What a disruption step does after its wait."""
    KILL_NODE = auto()
    START_NODE = auto()
    NONE = auto()


class OrchestratorPhase(Enum):
    IDLE = auto()
    RUNNING = auto()
    COMPLETED = auto()


@dataclass(frozen=True)
class DisruptionStep:
    """One entry of the failover schedule."""
    wait: float
    action: StepAction
    label: str
    port: Optional[int] = None
    launch_args: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.wait < 0:
            raise ValueError(f"Step '{self.label}' has negative wait {self.wait}")
        if self.action is StepAction.KILL_NODE and self.port is None:
            raise ValueError(f"Kill step '{self.label}' needs a port")


@dataclass(frozen=True)
class ExecutedStep:
    """Timeline entry recorded after a step's action ran."""
    index: int
    wait: float
    action: StepAction
    label: str
    ok: bool


def canonical_schedule(config) -> List[DisruptionStep]:
    """
    Build the standard kill/restart timeline from configuration.

    With default settings: 20s, kill primary; 30s, restart primary;
    20s, kill secondary; 30s, restart secondary; 20s, done.
    """
    primary_args = tuple(config.primary_launch_args)
    secondary_args = tuple(config.secondary_launch_args)
    return [
        DisruptionStep(config.initial_wait, StepAction.KILL_NODE,
                       "Kill primary node", port=config.primary_port),
        DisruptionStep(config.failover_wait, StepAction.START_NODE,
                       "Restart primary node", port=config.primary_port,
                       launch_args=primary_args),
        DisruptionStep(config.reelection_wait, StepAction.KILL_NODE,
                       "Kill secondary node", port=config.secondary_port),
        DisruptionStep(config.failover_wait, StepAction.START_NODE,
                       "Restart secondary node", port=config.secondary_port,
                       launch_args=secondary_args),
        DisruptionStep(config.reelection_wait, StepAction.NONE,
                       "Final re-election window"),
    ]


class FailoverOrchestrator:
    """Runs a DisruptionStep schedule against a NodeController."""

    def __init__(self, controller: NodeController, state: SimulationState,
                 schedule: List[DisruptionStep], stats: RunStats = None):
        self.controller = controller
        self.state = state
        self.schedule = list(schedule)
        self.stats = stats if stats is not None else RunStats()
        self.phase = OrchestratorPhase.IDLE
        self.step_index: Optional[int] = None
        self.history: List[ExecutedStep] = []

    def run(self) -> List[ExecutedStep]:
        """
        Execute the schedule, then mark the run complete.

        Returns:
            The executed steps, in order
        """
        self.phase = OrchestratorPhase.RUNNING
        total = len(self.schedule)
        logging.info(f"Failover orchestrator starting: {total} steps")

        try:
            for index, step in enumerate(self.schedule):
                self.step_index = index
                logging.info(f"Step {index + 1}/{total}: waiting {step.wait:g}s before '{step.label}'")

                if self.state.wait(step.wait):
                    logging.warning(f"Failover orchestrator cancelled during step {index + 1} ('{step.label}')")
                    break

                started = time.monotonic()
                ok = self._perform(step)
                self.history.append(ExecutedStep(index, step.wait, step.action, step.label, ok))
                logging.info(f"Step {index + 1}/{total} done: '{step.label}' "
                             f"({'ok' if ok else 'anomaly'}, {time.monotonic() - started:.1f}s)")
        finally:
            self.phase = OrchestratorPhase.COMPLETED
            self.state.complete()
            logging.info("Failover orchestrator completed; signalling workloads to stop")

        return self.history

    def _perform(self, step: DisruptionStep) -> bool:
        """Run one step's action. Anomalies are logged and never stop the schedule."""
        try:
            if step.action is StepAction.KILL_NODE:
                pid = self.controller.kill_node_on_port(step.port)
                self.stats.increment('nodes_killed')
                logging.info(f"{step.label}: killed PID {pid} on port {step.port}")
            elif step.action is StepAction.START_NODE:
                handle = self.controller.start_node(step.launch_args, port=step.port)
                self.stats.increment('nodes_started')
                logging.info(f"{step.label}: started PID {handle.pid}")
            return True
        except (DisruptionAnomaly, OSError, psutil.Error) as e:
            self.stats.increment('disruption_anomalies')
            logging.warning(format_disruption_error(step.label, str(e), step.port))
            logging.warning(f"{step.label}: continuing with schedule")
            return False
