"""appseed -- scaffold a ready-to-run web application from a bundled template."""

__version__ = "0.1.0"
