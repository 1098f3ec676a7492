"""Wine catalog service: wines, producers, user favorites and ratings."""

__version__ = "0.1.0"
