"""Package plugin projects into versioned, deployable archives."""

__version__ = "0.1.0"
