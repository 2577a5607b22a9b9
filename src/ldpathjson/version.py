"""Version information for :mod:`ldpathjson`."""

VERSION = "0.1.0"
