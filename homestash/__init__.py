"""homestash: location codes, hierarchy store and search for a home inventory."""

__version__ = "0.1.0"
