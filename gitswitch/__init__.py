"""Git profile switcher: encrypted secrets and safe git config updates."""

__version__ = "0.3.0"
