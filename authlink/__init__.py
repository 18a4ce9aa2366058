"""Forward local authentication results to a Bluetooth serial peripheral."""

__version__ = "0.1.0"
