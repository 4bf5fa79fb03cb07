"""dot-inject: render dotfile templates with secrets from a vault."""

__version__ = "1.0.0"
