from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple, Any
from .transform import RigidTransform
from .types import CalibrationResult

class IMessageSource(ABC):
    @abstractmethod
    def open(self) -> bool:
        pass

    @abstractmethod
    def read_message(self) -> Optional[Tuple[str, Dict[str, Any]]]:
        pass

    @abstractmethod
    def close(self):
        pass

class ITransformBroadcaster(ABC):
    @abstractmethod
    def send(self, parent: str, child: str, transform: RigidTransform):
        pass

class ICalibrationWriter(ABC):
    @abstractmethod
    def write(self, result: CalibrationResult, frames: Dict[str, str]) -> bool:
        pass
