"""healthwatch — resource health checking engine."""

__version__ = "0.1.0"
