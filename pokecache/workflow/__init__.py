"""Population pipeline entry points."""

from .orchastrator import start_population
from .population import PopulationWorker, StartupError, WorkerState

__all__ = ["PopulationWorker", "StartupError", "WorkerState", "start_population"]
