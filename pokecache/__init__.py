"""Read-through cache for the PokeAPI catalog."""

from .config import Settings, load_settings
from .services.cache import CacheStore, InvalidKeyError
from .workflow.orchastrator import start_population
from .workflow.population import PopulationWorker

__all__ = [
    "CacheStore",
    "InvalidKeyError",
    "PopulationWorker",
    "Settings",
    "load_settings",
    "start_population",
]
