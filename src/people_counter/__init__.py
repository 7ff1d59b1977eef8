"""
People Counter - directional people-flow counting from pose detections.
"""

__version__ = "0.1.0"
