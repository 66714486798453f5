from abc import ABC, abstractmethod
from typing import Tuple

from poolsweep.core.clients import ClientFactory
from poolsweep.core.config import Config
from poolsweep.core.sweep import SweepResult


class ResourceSweeper(ABC):
    # Registry key, also used as the report section
    name: str = ''
    # Sweepers that must finish in a region before this one runs
    dependencies: Tuple[str, ...] = ()

    def __init__(self, factory: ClientFactory, config: Config):
        self.factory = factory
        self.config = config

    @abstractmethod
    def sweep(self, region: str) -> SweepResult:
        pass
