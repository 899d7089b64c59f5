"""Utility functions for the alarm controller."""

import os
from typing import Any

import cv2
import numpy as np

from .exceptions import InvalidInputError


def ensure_directory_exists(path: str) -> None:
    """Ensure a directory exists, create if it doesn't."""
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


def validate_threshold(threshold: Any) -> float:
    """Return the threshold as a float, rejecting values outside [0, 1]."""
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise InvalidInputError(f"Confidence threshold must be a number, got {type(threshold).__name__}")
    if not 0.0 <= threshold <= 1.0:
        raise InvalidInputError(f"Confidence threshold must be within [0, 1], got {threshold}")
    return float(threshold)


def validate_image(image: Any) -> np.ndarray:
    """Check that an image is a non-empty grayscale or colour frame."""
    if image is None:
        raise InvalidInputError("Image is missing")
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(f"Image must be a numpy array, got {type(image).__name__}")
    if image.size == 0:
        raise InvalidInputError("Image is empty")
    if image.ndim == 3 and image.shape[2] not in (1, 3, 4):
        raise InvalidInputError(f"Unsupported channel count: {image.shape[2]}")
    if image.ndim not in (2, 3):
        raise InvalidInputError(f"Image must be 2 or 3 dimensional, got {image.ndim}")
    return image


def load_image(path: str) -> np.ndarray:
    """Read an image file into a BGR frame."""
    if not os.path.isfile(path):
        raise InvalidInputError(f"Image file not found: {path}")
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidInputError(f"Could not decode image: {path}")
    return image


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a frame to single-channel grayscale."""
    if image.ndim == 2:
        return image
    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
