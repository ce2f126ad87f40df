"""eco_sorter: on-device classification data lifecycle and retraining controller."""

__version__ = "0.0.1"
