"""relgate: release-authorization gate for tagged package releases."""

__version__ = "0.1.0"
