import logging
from typing import Dict, Tuple, Optional

from ..core.interfaces import ITransformBroadcaster
from ..core.transform import RigidTransform

logger = logging.getLogger(__name__)


class TransformBuffer(ITransformBroadcaster):
    """Keeps the latest transform for every (parent, child) pair."""

    def __init__(self):
        self.transforms: Dict[Tuple[str, str], RigidTransform] = {}

    def send(self, parent: str, child: str, transform: RigidTransform):
        self.transforms[(parent, child)] = transform
        logger.debug(f"{parent} -> {child}: {transform.to_pose7()}")

    def lookup(self, parent: str, child: str) -> Optional[RigidTransform]:
        return self.transforms.get((parent, child))
