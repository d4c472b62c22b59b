"""Fantasy Zoo: tick-driven idle zoo simulation"""

__version__ = "1.0.0"
