"""cryptofolio - conversational CLI for tracking a crypto portfolio."""

__app_name__ = "cryptofolio"
__version__ = "0.3.0"
