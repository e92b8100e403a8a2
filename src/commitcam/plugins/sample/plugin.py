"""Sample plugin that prints a line in every capture phase.

It exists as a reference for plugin authors: it participates in all three
phases, keeps the default ``enabled`` option, and reads the commit sha from
the :class:`~commitcam.models.CaptureContext` it is handed.
"""

from __future__ import annotations

from commitcam.models import CaptureContext, Phase
from commitcam.output import print_data
from commitcam.plugins.base import Plugin


class SamplePlugin(Plugin):
    """Prints a short emoji-themed message before, during and after a capture."""

    @property
    def name(self) -> str:
        return "plugin-sample"

    @property
    def runner_order(self) -> frozenset[Phase]:
        return frozenset({Phase.PRE_CAPTURE, Phase.POST_CAPTURE, Phase.CAPTURE_READY})

    @property
    def description(self) -> str:
        return "Reference plugin that prints a message in every phase"

    def run_pre_capture(self, ctx: CaptureContext) -> None:
        print_data("✨  Say cheese 😁 !")

    def run_post_capture(self, ctx: CaptureContext) -> None:
        print_data("📸  Snap ")

    def run_capture_ready(self, ctx: CaptureContext) -> None:
        print_data(f"✨  wow! {ctx.short_sha} is your best looking commit yet! 😘  💻")
