from .StatProfiler import StatProfiler

__all__ = [
    'StatProfiler',
]
