"""HTTP test server that serves canned JSON and emits synthetic log lines on demand."""

__version__ = "0.1.0"
