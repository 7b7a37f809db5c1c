"""Adapter for the external axe accessibility scanner.

The scanner is a separate command (a Playwright test running axe-core) that
reads the page to scan from ``A11Y_AI_URL`` and prints the violations as a
JSON array between two markers::

    ===ISSUES_BEGIN===
    [{"id": "image-alt", "help": "Images must have alternate text", ...}]
    ===ISSUES_END===
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from pathlib import Path

from a11yfix.core.config import ScanConfig
from a11yfix.core.errors import ScanError
from a11yfix.core.input_resolver import is_url
from a11yfix.core.models import Issue

logger = logging.getLogger(__name__)

URL_ENV_PROPERTY = "A11Y_AI_URL"
_ISSUES_RE = re.compile(r"===ISSUES_BEGIN===\n([\s\S]*?)===ISSUES_END===", re.MULTILINE)


def parse_scan_output(output: str) -> list[Issue]:
    """Extract the issues printed by the scanner command."""
    match = _ISSUES_RE.search(output)
    if not match:
        raise ScanError("Could not find issues in command output")
    try:
        raw_issues = json.loads(match.group(1))
    except ValueError as exc:
        raise ScanError(f"Could not read issues from command output: {exc}") from exc
    if not isinstance(raw_issues, list):
        raise ScanError("Could not read issues from command output: expected a list")
    return [Issue.from_dict(raw) for raw in raw_issues]


class AxeScanner:
    """Runs the scanner command for one file or URL at a time."""

    def __init__(self, config: ScanConfig | None = None):
        self.config = config or ScanConfig()

    async def scan(self, target: str) -> list[Issue]:
        input_url = target if is_url(target) else Path(target).resolve().as_uri()
        env = {**os.environ, URL_ENV_PROPERTY: input_url}

        logger.debug("Running command: %s", self.config.command)
        try:
            process = await asyncio.create_subprocess_shell(
                self.config.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.config.timeout
            )
        except asyncio.TimeoutError as exc:
            process.kill()
            raise ScanError(f"Error while running axe scan: timed out after {self.config.timeout}s") from exc
        except OSError as exc:
            raise ScanError(f"Error while running axe scan: {exc}") from exc

        output = stdout.decode(errors="replace")
        if "===ISSUES_BEGIN===" not in output and process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit code {process.returncode}"
            raise ScanError(f"Error while running axe scan: {message}")

        issues = parse_scan_output(output)
        logger.debug("Found %d issues", len(issues))
        logger.debug("Issues details: %s", issues)
        return issues
