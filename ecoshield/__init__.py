"""EcoShield: environmental-impact analysis and scrap dealer lookup."""

__version__ = "1.0.0"
