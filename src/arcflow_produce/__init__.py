"""Arc Flow production-scheme export -> PRODUCE import records."""
from .schemas import ParsedData, TransformResult
from .transform.pipeline import transform

__all__ = ["ParsedData", "TransformResult", "transform"]
__version__ = "0.1.0"
