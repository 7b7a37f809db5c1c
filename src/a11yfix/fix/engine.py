"""Fix Engine — orchestrates chunking, fix requests and patch application."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx

from a11yfix.core.config import A11yFixConfig, load_config
from a11yfix.core.errors import A11yFixError, FixError
from a11yfix.core.input_resolver import download_page, is_html_file, is_url
from a11yfix.core.models import FileFixResult, FixResult, FixSettings, Issue
from a11yfix.fix.chunker import preprocess_input, restore_script_blocks
from a11yfix.fix.client import FixServiceClient
from a11yfix.fix.patch import apply_patch_diff
from a11yfix.fix.retry import Sleep, retry_within_limits
from a11yfix.fix.tokenizer import TokenCounter, token_counter
from a11yfix.scanner.axe import AxeScanner

logger = logging.getLogger(__name__)


class FixClient(Protocol):
    async def request_fix(
        self,
        source_code: str,
        issues: list[str] | None = None,
        context: str | None = None,
        output_diff: bool = False,
    ) -> str: ...

    async def close(self) -> None: ...


class IssueScanner(Protocol):
    async def scan(self, target: str) -> list[Issue]: ...


class FixEngine:
    """Core engine that sends documents to the fix service and rebuilds them.

    Chunks of one document are always requested one after the other so a
    shared rate limit is respected. Different documents may be fixed
    concurrently with :meth:`fix_files`.
    """

    def __init__(
        self,
        config: A11yFixConfig | None = None,
        client: FixClient | None = None,
        scanner: IssueScanner | None = None,
        count: TokenCounter | None = None,
        sleep: Sleep | None = None,
    ):
        self.config = config or load_config()
        self.client = client or FixServiceClient(self.config.service)
        self.scanner = scanner or AxeScanner(self.config.scan)
        self.count = count or token_counter(self.config.chunking.model)
        self.sleep = sleep or asyncio.sleep

    async def __aenter__(self) -> FixEngine:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.client.close()

    async def suggest_fix(
        self,
        identifier: str,
        code: str,
        issues: list[str] | None = None,
        settings: FixSettings | None = None,
    ) -> FixResult:
        """Fix ``code`` chunk by chunk and reassemble the result.

        Any chunk failure aborts the whole document with a :class:`FixError`
        naming ``identifier``.
        """
        settings = settings or FixSettings()
        issues = issues or []
        max_tokens = settings.chunk_size or self.config.chunking.max_tokens

        try:
            chunks = preprocess_input(identifier, code, max_tokens, self.count)
            logger.debug("%s: preprocessed input into %d chunk(s)", identifier, len(chunks))

            suggestions: list[str] = []
            patches: list[str] | None = [] if settings.output_diff else None

            for index, chunk in enumerate(chunks):
                logger.debug(
                    "%s: requesting fix for chunk %d/%d (%d tokens)",
                    identifier, index + 1, len(chunks), chunk.tokens,
                )

                async def request(chunk_code: str = chunk.code) -> str:
                    return await self.client.request_fix(
                        chunk_code,
                        issues=issues or None,
                        context=settings.context,
                        output_diff=settings.output_diff,
                    )

                response = await retry_within_limits(
                    request,
                    max_retries=self.config.service.max_retries,
                    sleep=self.sleep,
                )

                if patches is not None:
                    patches.append(chunk.code)

                logger.debug("%s: should apply patch diff: %s", identifier, settings.output_diff)
                suggestions.append(apply_patch_diff(chunk.code, response, settings.output_diff))
        except A11yFixError as exc:
            logger.debug("%s: fix aborted: %s", identifier, exc)
            raise FixError(identifier, exc) from exc

        return FixResult(
            code="".join(chunk.code for chunk in chunks),
            suggestion="".join(suggestions),
            patches=patches,
        )

    async def scan_issues(self, target: str) -> list[str]:
        """Scan ``target`` and return the issue labels to send for fixing."""
        logger.debug("Scanning for accessibility issues in '%s'...", target)
        issues = await self.scanner.scan(target)
        return [issue.help for issue in issues]

    async def load_content(self, target: str) -> str:
        if is_url(target):
            return await download_page(target)
        return Path(target).read_text(encoding="utf-8")

    async def fix_file(
        self,
        target: str,
        settings: FixSettings | None = None,
        issues: list[str] | None = None,
        write: bool = False,
    ) -> FileFixResult:
        """Scan, fix and optionally write back one file or URL.

        When no issues are given, HTML files and URLs are scanned first; a
        scan that finds nothing ends the fix early. Other files are sent as is
        and the service looks for issues on its own.
        """
        issues = list(issues or [])
        scan = not issues and (is_html_file(target) or is_url(target))

        try:
            if scan:
                issues = await self.scan_issues(target)
                if not issues:
                    logger.debug("No issues found in %s", target)
                    return FileFixResult(file=target, scanned=True, issues=issues)
            else:
                logger.debug("Skipping scan for '%s'", target)

            logger.debug("Searching fixes for '%s'...", target)
            content = await self.load_content(target)
        except (A11yFixError, OSError, httpx.HTTPError) as exc:
            raise FixError(target, exc) from exc

        result = await self.suggest_fix(target, content, issues, settings)
        if not result.suggestion:
            logger.debug("No fix suggestion for '%s'", target)
            return FileFixResult(
                file=target, scanned=scan, issues=issues, result=result, content=content
            )

        fixed, accepted = True, None
        if write:
            accepted = self.write_fix(target, content, result)
            fixed = accepted

        return FileFixResult(
            file=target,
            scanned=scan,
            issues=issues,
            fixed=fixed,
            accepted=accepted,
            result=result,
            content=content,
        )

    def write_fix(self, target: str, content: str, result: FixResult) -> bool:
        """Write the fixed document over ``target`` with its scripts restored."""
        if is_url(target):
            logger.debug("Cannot write fix for URL '%s'", target)
            return False
        patched = restore_script_blocks(content, result.code, result.suggestion)
        Path(target).write_text(patched, encoding="utf-8")
        logger.debug("Applied fix for '%s'", target)
        return True

    async def fix_files(
        self,
        targets: list[str],
        settings: FixSettings | None = None,
        issues: list[str] | None = None,
        write: bool = False,
    ) -> list[FileFixResult]:
        """Fix several documents concurrently; each one's chunks stay in order."""
        return list(
            await asyncio.gather(
                *(self.fix_file(target, settings, issues, write) for target in targets)
            )
        )
