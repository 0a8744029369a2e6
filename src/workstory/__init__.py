"""workstory: cluster cross-tool activity into coherent work stories."""

__version__ = "0.1.0"
