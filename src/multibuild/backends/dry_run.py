"""Backend that only reports what would be built."""

from __future__ import annotations

import logging

from .base import BuildBackend, BuildOutcome, BuildRequest

_logger = logging.getLogger("multibuild.backends.dry_run")


class DryRunBackend(BuildBackend):
    """Succeeds immediately for every request without touching the host.

    Requests are kept in :attr:`requests` so callers can show the plan.
    """

    def __init__(self) -> None:
        self.requests: list[BuildRequest] = []

    @property
    def name(self) -> str:
        return "dry-run"

    def build(self, request: BuildRequest) -> BuildOutcome:
        self.requests.append(request)
        _logger.info(
            "Would build %s -> %s (%d scenes, append=%s)",
            request.target.value,
            request.output_path,
            len(request.scenes),
            request.allow_append,
        )
        return BuildOutcome(succeeded=True, message="dry run")
