"""playdeck - sequential playlist player backed by mpv."""

__version__ = "0.1.0"
