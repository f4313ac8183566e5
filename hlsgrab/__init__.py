"""
hlsgrab: downloads byte-ranged HLS/fMP4 streams into a single MP4 file.
"""

__version__ = "1.0.0"
