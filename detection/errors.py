"""Error types raised by the detection engine.

Buffer problems raise :class:`utils.validators.ValidationError`; the classes
below cover the training and model persistence paths.
"""


class DetectorError(Exception):
    """Base class for recoverable detector errors."""


class InvalidTrainingType(DetectorError):
    """Raised when a training label is not ``"ai"`` or ``"real"``."""

    def __init__(self, label):
        super().__init__(f"Invalid training type: {label!r}")
        self.label = label


class CapacityExceeded(DetectorError):
    """Raised when a corpus class would grow past its sample limit."""

    def __init__(self, label, current, requested, limit):
        super().__init__(
            f"Maximum number of samples reached for {label!r}: "
            f"{current} stored + {requested} new > {limit}"
        )
        self.label = label
        self.current = current
        self.requested = requested
        self.limit = limit


class InsufficientSamples(DetectorError):
    """Raised when a training session does not hold enough samples."""

    def __init__(self, counts, minimum):
        super().__init__(
            f"Not enough samples for training (need {minimum} per class, "
            f"have ai={counts.get('ai', 0)}, real={counts.get('real', 0)})"
        )
        self.counts = dict(counts)
        self.minimum = minimum


class TrainingInactive(DetectorError):
    """Raised when samples are added while no training session is running."""


class ModelError(DetectorError):
    """Base class for model import failures."""


class MalformedModel(ModelError):
    """Raised when a model payload is not decodable or misses a threshold."""


class InvalidNumber(ModelError):
    """Raised when a model threshold is not a finite number."""
