"""Layer Observer Package for calibration

Provides range tracking observers:
- MinmaxObserver: running min/max per tensor output, merged by union
"""

from .base import BaseObserver
from .minmax import MinmaxObserver

__all__ = [
    'BaseObserver',
    'MinmaxObserver',
]
