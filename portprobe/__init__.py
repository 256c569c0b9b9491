from .config import EngineConfig, init_cfg_from_env, load_config
from .engine import PortEngine
from .models import ListeningSocket, ProcessOwnershipRecord, Protocol, ResolutionStats

__all__ = [
    "EngineConfig", "init_cfg_from_env", "load_config", "PortEngine",
    "ListeningSocket", "ProcessOwnershipRecord", "Protocol", "ResolutionStats",
]
__version__ = "0.3.0"
