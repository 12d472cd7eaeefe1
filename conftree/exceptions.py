# conftree/exceptions.py
"""
conftree.exceptions
-------------------

Custom exceptions for conftree.
"""


class ConfigSourceError(RuntimeError):
    """
    Raised when a configuration source cannot be read or parsed.
    """

    def __init__(self, path, reason):
        super().__init__(f"Error loading config source {path}: {reason}")
        self.path = path
