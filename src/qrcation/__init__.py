"""QRcation: location and time stamped as a QR code."""

__version__ = "0.1.0"
