# -*- coding: utf-8 -*-
APP_NAME = "PIXELSCOPE"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Heuristic AI-generated image detector"

SUPPORTED_IMAGE_FORMATS = [".png", ".bmp", ".jpg", ".jpeg", ".webp"]

# Logging
LOGGING_SETTINGS = {
    "level": "INFO",           # DEBUG/INFO/WARNING/ERROR
    "log_dir": "logs",
    "log_file": "pixelscope.log",
    "max_bytes": 2 * 1024 * 1024,
    "backup_count": 3,
}

# Detection engine
DETECTION_SETTINGS = {
    "min_dimension": 50,
    "max_dimension": 4096,
    "max_samples": 1000,        # per class, in-memory only
    "min_training_samples": 5,  # per class, for a training session
    "symmetry_tolerance": 10,   # summed RGB delta for a mirrored pair to match
    "auxiliary_features": True,  # jpegBlocks + frequency categories
    "event_photo_dampening": True,
}

# Score labels used by the CLI
SCORE_LEVELS = {
    "medium": 50,
    "high": 70,
}
