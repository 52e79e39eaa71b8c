"""flowershop - inventory, write-off and order tracking for a flower shop."""

__version__ = "0.1.0"
