"""
Chaos Testing Infrastructure

Fault injectors that stand in for the replicated store and the node
controller, so failover behavior can be exercised without real processes.

Chaos testing philosophy:
- Inject failures systematically, not randomly
- Test one failure mode at a time for clarity
- Verify the workloads keep running through every injected fault
- Ensure every task stops once the run is complete
"""

from .fault_injectors import (
    FlakyStore,
    OutageStore,
    RecordingNodeController,
    VirtualClockState,
)

__all__ = [
    'FlakyStore',
    'OutageStore',
    'RecordingNodeController',
    'VirtualClockState',
]
