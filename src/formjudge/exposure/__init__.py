"""Server-side exposure allow-list for uniqueness queries."""

from formjudge.exposure.loader import load_exposure_file
from formjudge.exposure.policy import ExposurePolicy

__all__ = ["ExposurePolicy", "load_exposure_file"]
