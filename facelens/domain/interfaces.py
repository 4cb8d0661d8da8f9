"""
Domain interfaces (ports)
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import numpy as np

from .models import (
    Detection,
    FaceAnalysisRecord,
    HealthStatus,
    NewFaceAnalysis,
    NewUser,
    User,
)


class FaceDetectorInterface(ABC):
    """Interface for the face detection / landmark / age-gender model"""

    @abstractmethod
    def detect(self, image: np.ndarray) -> List[Detection]:
        """Detect all faces in a BGR image, coordinates in that image's pixels"""
        pass

    @abstractmethod
    def detect_one(self, image: np.ndarray) -> Optional[Detection]:
        """Detect the most prominent face in a crop, or None"""
        pass

    @abstractmethod
    def get_health(self) -> HealthStatus:
        """Get service health status"""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Check if the detector is ready"""
        pass


class ImageLoaderInterface(ABC):
    """Interface for image loading"""

    @abstractmethod
    def load_from_bytes(self, data: bytes) -> Optional[np.ndarray]:
        """Load image from bytes"""
        pass


class AnalysisStorageInterface(ABC):
    """Persistence gateway for analysis records and user credentials"""

    name = "abstract"

    @abstractmethod
    def create_analysis(self, analysis: NewFaceAnalysis) -> FaceAnalysisRecord:
        pass

    @abstractmethod
    def list_analyses(self, limit: int = 10) -> List[FaceAnalysisRecord]:
        """Most recent records first"""
        pass

    @abstractmethod
    def get_analysis(self, analysis_id: str) -> Optional[FaceAnalysisRecord]:
        pass

    @abstractmethod
    def create_user(self, user: NewUser) -> User:
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        pass
