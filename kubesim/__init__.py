"""
kubesim - docker and kubectl terminal simulator

Simulates the docker and kubectl command-line tools against an in-memory
cluster and container daemon. Feed input lines to execute_command() and
display the returned text.

Example Usage:

    from kubesim import SimulatorEngine

    engine = SimulatorEngine()
    print(engine.execute("kubectl create deployment web --image=nginx --replicas=2"))
    print(engine.execute("kubectl get pods"))
"""

__version__ = "1.0.0"

from .shell.engine import SimulatorEngine, execute_command, get_completions

__all__ = ['SimulatorEngine', 'execute_command', 'get_completions', '__version__']
