"""
Tests for the failover orchestrator and the canonical schedule.
"""

import psutil
import pytest

from core.config import Config
from core.orchestrator import (DisruptionStep, FailoverOrchestrator, OrchestratorPhase,
                               StepAction, canonical_schedule)
from core.stats import RunStats
from tests.chaos.fault_injectors import RecordingNodeController, VirtualClockState


PRIMARY_ARGS = ('--port', '27017', '--replSet', 'rs0', '--dbpath', '/data/db1')
SECONDARY_ARGS = ('--port', '27018', '--replSet', 'rs0', '--dbpath', '/data/db2')


def _run_canonical():
    state = VirtualClockState()
    controller = RecordingNodeController()
    orchestrator = FailoverOrchestrator(controller, state, canonical_schedule(Config()))
    history = orchestrator.run()
    return state, controller, orchestrator, history


class TestCanonicalSchedule:

    def test_default_schedule_matches_timeline(self):
        schedule = canonical_schedule(Config())

        assert [(s.wait, s.action) for s in schedule] == [
            (20, StepAction.KILL_NODE),
            (30, StepAction.START_NODE),
            (20, StepAction.KILL_NODE),
            (30, StepAction.START_NODE),
            (20, StepAction.NONE),
        ]
        assert schedule[0].port == 27017
        assert schedule[1].launch_args == PRIMARY_ARGS
        assert schedule[2].port == 27018
        assert schedule[3].launch_args == SECONDARY_ARGS

    def test_schedule_follows_config(self):
        config = Config()
        config.set('initial_wait', 1)
        config.set('failover_wait', 2)
        config.set('reelection_wait', 3)
        config.set('primary_port', 30001)

        schedule = canonical_schedule(config)
        assert [s.wait for s in schedule] == [1, 2, 3, 2, 3]
        assert schedule[0].port == 30001

    def test_step_validation(self):
        with pytest.raises(ValueError):
            DisruptionStep(-1, StepAction.NONE, "bad wait")
        with pytest.raises(ValueError):
            DisruptionStep(1, StepAction.KILL_NODE, "kill without port")


class TestOrchestratorDeterminism:

    def test_actions_and_waits_in_order(self):
        state, controller, orchestrator, history = _run_canonical()

        assert state.waits == [20, 30, 20, 30, 20]
        assert state.now == 120
        assert controller.calls == [
            ('kill', 27017),
            ('start', PRIMARY_ARGS),
            ('kill', 27018),
            ('start', SECONDARY_ARGS),
        ]
        assert [h.label for h in history] == [
            "Kill primary node",
            "Restart primary node",
            "Kill secondary node",
            "Restart secondary node",
            "Final re-election window",
        ]

    def test_identical_across_runs(self):
        first = _run_canonical()
        second = _run_canonical()

        assert first[0].waits == second[0].waits
        assert first[1].calls == second[1].calls
        assert first[3] == second[3]

    def test_completion_sets_signals(self):
        state, _, orchestrator, _ = _run_canonical()

        assert orchestrator.phase is OrchestratorPhase.COMPLETED
        assert orchestrator.step_index == 4
        assert state.completed
        assert state.cancelled

    def test_starts_idle(self):
        orchestrator = FailoverOrchestrator(RecordingNodeController(), VirtualClockState(), [])
        assert orchestrator.phase is OrchestratorPhase.IDLE
        assert orchestrator.step_index is None


class TestOrchestratorFailures:

    def test_missing_node_is_anomaly_and_schedule_continues(self, caplog):
        state = VirtualClockState()
        stats = RunStats()
        controller = RecordingNodeController(missing_ports=[27017])
        orchestrator = FailoverOrchestrator(controller, state, canonical_schedule(Config()), stats)

        history = orchestrator.run()

        assert len(history) == 5
        assert history[0].ok is False
        assert all(step.ok for step in history[1:])
        assert stats['disruption_anomalies'] == 1
        assert stats['nodes_killed'] == 1
        assert stats['nodes_started'] == 2
        assert "No process listening on port 27017" in caplog.text
        assert state.completed

    def test_failed_start_is_anomaly(self):
        stats = RunStats()
        controller = RecordingNodeController(fail_starts=True)
        orchestrator = FailoverOrchestrator(controller, VirtualClockState(),
                                            canonical_schedule(Config()), stats)
        orchestrator.run()

        assert stats['disruption_anomalies'] == 2
        assert stats['nodes_started'] == 0
        assert len(controller.calls) == 4

    def test_cancel_mid_wait_skips_remaining_actions(self):
        # Cancelled during the 30s wait before the primary restart
        state = VirtualClockState(cancel_at=35)
        controller = RecordingNodeController()
        orchestrator = FailoverOrchestrator(controller, state, canonical_schedule(Config()))

        history = orchestrator.run()

        assert controller.calls == [('kill', 27017)]
        assert len(history) == 1
        assert orchestrator.phase is OrchestratorPhase.COMPLETED
        assert state.completed

    def test_each_wait_starts_after_previous_action(self):
        state = VirtualClockState()
        timeline = []

        class TimedController(RecordingNodeController):
            def kill_node_on_port(self, port):
                timeline.append(('kill', state.now))
                state.now += 5  # slow kill
                return super().kill_node_on_port(port)

            def start_node(self, launch_args, port=None):
                timeline.append(('start', state.now))
                return super().start_node(launch_args, port)

        FailoverOrchestrator(TimedController(), state, canonical_schedule(Config())).run()

        assert timeline == [('kill', 20), ('start', 55), ('kill', 75), ('start', 110)]

    @pytest.mark.parametrize("error", [
        OSError("permission denied reading /proc"),
        psutil.AccessDenied(1),
    ])
    def test_unexpected_controller_error_does_not_stop_schedule(self, error, caplog):
        class UnreadableProcController(RecordingNodeController):
            def kill_node_on_port(self, port):
                self.calls.append(('kill', port))
                raise error

        stats = RunStats()
        state = VirtualClockState()
        controller = UnreadableProcController()
        orchestrator = FailoverOrchestrator(controller, state, canonical_schedule(Config()), stats)

        history = orchestrator.run()

        assert len(controller.calls) == 4
        assert len(history) == 5
        assert [h.ok for h in history] == [False, True, False, True, True]
        assert stats['disruption_anomalies'] == 2
        assert state.now == 120
        assert "continuing with schedule" in caplog.text
