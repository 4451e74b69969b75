"""Camera-driven point-of-sale demo"""

__version__ = "1.0.0"
