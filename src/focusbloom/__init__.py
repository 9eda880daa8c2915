"""FocusBloom - offline-resilient Pomodoro session sync."""

__version__ = "0.1.0"
