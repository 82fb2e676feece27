"""
We3Vision API: blog, careers board, media and site assets.
"""

__version__ = "1.0.0"
