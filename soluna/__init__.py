"""soluna - sun, moon & prayer times gateway."""

__version__ = "0.1.0"
__logo__ = "🌙"
