"""
Sinks Package

Terminal handlers that format records and write them somewhere. Any of
them can be wrapped by RedactHandler.

Available sinks:
    - JSONHandler: one JSON object per line on a text stream
    - TextHandler: logfmt-style key=value lines on a text stream
    - CloudWatchHandler: JSON events shipped to AWS CloudWatch Logs
    - MultiHandler: fans a record out to several handlers
"""

from .cloudwatch import CloudWatchHandler
from .json_handler import JSONHandler
from .multi import MultiHandler
from .text_handler import TextHandler

__all__ = ["CloudWatchHandler", "JSONHandler", "MultiHandler", "TextHandler"]
