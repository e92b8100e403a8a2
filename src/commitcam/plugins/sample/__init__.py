"""Sample plugin showing every hook of the plugin contract."""

from commitcam.plugins.sample.plugin import SamplePlugin

__all__ = ["SamplePlugin"]
