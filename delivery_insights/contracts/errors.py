"""
Error taxonomy for the shipment pipeline.

All errors subclass ValueError; I/O failures surface as the built-in
FileNotFoundError / OSError and are fatal.
"""


class SchemaError(ValueError):
    """Missing, renamed or extra columns, unknown categorical levels, non-numeric values."""


class DataQualityError(ValueError):
    """Null outcome after recoding, duplicate identifiers, out-of-range values."""


class EvaluationPrepError(ValueError):
    """A holdout categorical level was never seen by the encoder fitted on training data."""
