"""
Simulated infrastructure core: entity models, the state store and the
settle scheduler used for two-phase deletion.
"""

from .state import StateStore, ALL_NAMESPACES
from .fixture import ClusterFixture, load_fixture_file
from .scheduler import SettleScheduler, ManualClock
from .ids import IdGenerator

__all__ = ['StateStore', 'ALL_NAMESPACES', 'ClusterFixture', 'load_fixture_file', 'SettleScheduler', 'ManualClock', 'IdGenerator']
