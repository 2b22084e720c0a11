"""sitegate: canonical formatting and merge checks for static-site documents."""

__version__ = "0.1.0"
