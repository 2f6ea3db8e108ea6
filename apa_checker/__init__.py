"""APA 7 formatting checker for Word documents."""

__version__ = "0.3.0"
