"""PIXELSCOPE Detection Module"""

from utils.validators import ValidationError, validate_buffer

from .analysis import analyze
from .calibration import TrainingCorpus, calibrate, train
from .detector import AIDetector
from .errors import (
    CapacityExceeded,
    DetectorError,
    InsufficientSamples,
    InvalidNumber,
    InvalidTrainingType,
    MalformedModel,
    ModelError,
    TrainingInactive,
)
from .features import extract_features
from .indicators import indicators
from .persistence import export_model, import_model
from .pixel_buffer import PixelBuffer
from .scoring import EventPhotoDampening, score
from .thresholds import DEFAULT_THRESHOLDS, RULES, ThresholdTable, default_thresholds, reset_thresholds
from .training import TrainingManager
from .types import AnalysisResult, FeatureSet, ScoreReport, TrainingStats

__all__ = [
    'AIDetector', 'AnalysisResult', 'CapacityExceeded', 'DEFAULT_THRESHOLDS',
    'DetectorError', 'EventPhotoDampening', 'FeatureSet', 'InsufficientSamples',
    'InvalidNumber', 'InvalidTrainingType', 'MalformedModel', 'ModelError',
    'PixelBuffer', 'RULES', 'ScoreReport', 'ThresholdTable', 'TrainingCorpus',
    'TrainingInactive', 'TrainingManager', 'TrainingStats', 'ValidationError',
    'analyze', 'calibrate', 'default_thresholds', 'export_model',
    'extract_features', 'import_model', 'indicators', 'reset_thresholds',
    'score', 'train', 'validate_buffer',
]
