"""reposcope: streamed AI structural reports for public GitHub repositories."""

__version__ = "0.1.0"
