"""FaceLens: face detection with ensemble age/gender refinement"""

__version__ = "1.0.0"
