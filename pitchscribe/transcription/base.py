from __future__ import annotations
from abc import ABC, abstractmethod
import numpy as np

from pitchscribe.state import FrameSeries


class PitchEstimator(ABC):
    """Boundary to the external pitch/confidence model."""

    @abstractmethod
    def estimate(self, audio: np.ndarray, sr: int) -> FrameSeries:
        raise NotImplementedError
