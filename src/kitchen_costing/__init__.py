"""Kitchen Costing - ingredient costing, recipe pricing and recipe sharing core."""

__version__ = "0.1.0"
