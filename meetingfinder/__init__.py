"""
meetingfinder - find meeting times that work across timezones.
"""

__version__ = "0.1.0"
