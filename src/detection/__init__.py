"""
Exam Monitor - Detection Module

Detector wrapper, prediction cache, box filter and classifier.
"""

from .box_filter import filter_small_boxes
from .cache import PredictionCache
from .classifier import Classifier
from .detector import DetectorState, ObjectDetector

__all__ = ['filter_small_boxes', 'PredictionCache', 'Classifier', 'DetectorState', 'ObjectDetector']
