"""Arc Flow -> PRODUCE record generation.

Stages live in their own modules and are composed by
:func:`arcflow_produce.transform.pipeline.transform`:

    from arcflow_produce.transform.pipeline import transform
"""
from .pipeline import transform

__all__ = ["transform"]
