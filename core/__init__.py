"""
Failsim Core Module
Retry policy, workloads, failover orchestration and their composition.
"""

from .config import Config
from .logger import setup_logging
from .retry import RetryPolicy, RetryExecutor, RetryCancelled
from .state import SimulationState
from .store import Record, StoreAccess, MongoStore, TransientStoreError, FatalConfigurationError
from .node_controller import NodeController, NodeHandle, DisruptionAnomaly
from .orchestrator import FailoverOrchestrator, DisruptionStep, StepAction, canonical_schedule
from .simulation import Simulation, SimulationResult

__all__ = [
    'Config',
    'setup_logging',
    'RetryPolicy',
    'RetryExecutor',
    'RetryCancelled',
    'SimulationState',
    'Record',
    'StoreAccess',
    'MongoStore',
    'TransientStoreError',
    'FatalConfigurationError',
    'NodeController',
    'NodeHandle',
    'DisruptionAnomaly',
    'FailoverOrchestrator',
    'DisruptionStep',
    'StepAction',
    'canonical_schedule',
    'Simulation',
    'SimulationResult',
]
