"""Sort photos into session folders by capture time."""

__version__ = "0.1.0"
