"""hubwrap - git + hub = github."""

__version__ = "1.2.0"
