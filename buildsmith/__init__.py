"""buildsmith: build recommendation & scoring engine"""

__version__ = "0.3.0"
