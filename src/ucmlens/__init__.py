"""ucmlens - identifier resolution and editor intelligence for Unison codebases."""

__version__ = "0.1.0"
