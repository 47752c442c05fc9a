"""folioctl — content checks and scaffolding for Jekyll/fastpages portfolio sites."""

__version__ = "0.3.0"
