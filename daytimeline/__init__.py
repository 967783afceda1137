"""
daytimeline - Day-timeline slot editor for personal time tracking.
"""

__version__ = "0.1.0"
