"""Animal classifier implementations using OpenCV."""

import os
import random
from typing import Optional, Tuple

import cv2
import numpy as np

from ..config.defaults import CLASSIFIER_SETTINGS
from ..exceptions import CollaboratorUnavailableError
from ..utils import to_grayscale, validate_image, validate_threshold
from .interfaces import AnimalClassifierInterface
from ..logging_config import get_logger

logger = get_logger("animal_classifier")


class HaarCascadeCatClassifier(AnimalClassifierInterface):
    """Cat classifier using OpenCV Haar cascades.

    Each candidate box's cascade level weight is scaled into a [0, 1]
    confidence; the image contains a cat when any box reaches the requested
    threshold.
    """

    def __init__(self,
                 cascade_path: Optional[str] = None,
                 scale_factor: float = 1.1,
                 min_neighbors: int = 3,
                 min_size: Tuple[int, int] = CLASSIFIER_SETTINGS["min_size"],
                 max_level_weight: float = CLASSIFIER_SETTINGS["max_level_weight"]):
        self.cascade_path = cascade_path
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = tuple(min_size)
        self.max_level_weight = max_level_weight
        self.cascade = None

    def load_cascade(self) -> None:
        """Load the configured cascade, falling back to OpenCV's bundled ones."""
        candidates = []
        if self.cascade_path:
            candidates.append(self.cascade_path)
        candidates.extend(
            os.path.join(cv2.data.haarcascades, name)
            for name in CLASSIFIER_SETTINGS["builtin_cascades"]
        )

        for path in candidates:
            if not os.path.exists(path):
                continue
            cascade = cv2.CascadeClassifier(path)
            if cascade.empty():
                logger.warning(f"Failed to load cascade from {path}")
                continue
            self.cascade = cascade
            logger.info(f"Loaded cascade from {path}")
            return

        raise CollaboratorUnavailableError("animal classifier", "no usable cat cascade found")

    def image_contains_animal(self, image: np.ndarray, confidence_threshold: float) -> bool:
        threshold = validate_threshold(confidence_threshold)
        validate_image(image)

        if self.cascade is None:
            self.load_cascade()

        confidences = self.detection_confidences(image)
        detected = any(confidence >= threshold for confidence in confidences)
        logger.debug(f"Cat candidates: {len(confidences)}, detected={detected} "
                     f"(threshold={threshold})")
        return detected

    def detection_confidences(self, image: np.ndarray) -> list:
        """Return one confidence in [0, 1] per candidate cat face."""
        gray = to_grayscale(image)
        if gray.dtype != np.uint8:
            gray = np.clip(gray, 0, 255).astype(np.uint8)
        gray = cv2.equalizeHist(gray)

        try:
            _, _, level_weights = self.cascade.detectMultiScale3(
                gray,
                scaleFactor=self.scale_factor,
                minNeighbors=self.min_neighbors,
                minSize=self.min_size,
                outputRejectLevels=True
            )
        except cv2.error as e:
            raise CollaboratorUnavailableError("animal classifier", str(e)) from e

        return [
            min(1.0, max(0.0, float(weight) / self.max_level_weight))
            for weight in np.asarray(level_weights).ravel()
        ]


class FakeAnimalClassifier(AnimalClassifierInterface):
    """Classifier that draws a random confidence for every image."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def image_contains_animal(self, image: np.ndarray, confidence_threshold: float) -> bool:
        threshold = validate_threshold(confidence_threshold)
        validate_image(image)
        return self._random.random() >= threshold
