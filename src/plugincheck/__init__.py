"""plugincheck - drift promotion readiness and live gate verification for Lidarr plugins."""

__version__ = "0.1.0"
