"""Result Post-Processor: rewrites terse output from low-fidelity targets.

Low-fidelity targets tend to return bare code. When such a target's
successful output carries fewer explanatory words than the configured
minimum, a rewriter turns it into a user-facing answer. Rewriting is best
effort: any failure keeps the raw output.
"""

from __future__ import annotations

import asyncio
import re

from caprouter.backends.base import ExecutionResult, ExecutionStatus, Rewriter
from caprouter.config.models import PostProcessingConfig
from caprouter.observability.logging import get_logger
from caprouter.routing.models import ExecutionTarget, RequestContext

log = get_logger(__name__)

_FENCED_BLOCK = re.compile(r"```.*?(?:```|\Z)", re.DOTALL)
_WORD = re.compile(r"[A-Za-z][A-Za-z'-]*")

_CODE_LINE_PREFIXES = (
    "def ",
    "class ",
    "import ",
    "from ",
    "return ",
    "function ",
    "const ",
    "let ",
    "var ",
    "#include",
    "//",
)
_CODE_LINE_SUFFIXES = (";", "{", "}")


def _is_code_line(line: str) -> bool:
    if line.startswith(("    ", "\t")):
        return True
    stripped = line.strip()
    return stripped.startswith(_CODE_LINE_PREFIXES) or stripped.endswith(_CODE_LINE_SUFFIXES)


def count_prose_words(output: str) -> int:
    """Count explanatory words, ignoring fenced blocks and code-looking lines."""
    without_fences = _FENCED_BLOCK.sub("\n", output)
    prose_lines = [
        line
        for line in without_fences.splitlines()
        if line.strip() and not _is_code_line(line)
    ]
    return sum(len(_WORD.findall(line)) for line in prose_lines)


class PostProcessor:
    """Decides when to rewrite output and performs the rewrite.

    Example:
        processor = PostProcessor(config.post_processing, rewriter)
        result, rewritten = await processor.process(context, target, result)
    """

    def __init__(
        self,
        config: PostProcessingConfig | None = None,
        rewriter: Rewriter | None = None,
    ) -> None:
        self._config = config or PostProcessingConfig()
        self._rewriter = rewriter
        if self._config.enabled and rewriter is None:
            log.debug("postprocess.rewriter.missing", backend=self._config.rewriter_backend)

    @property
    def enabled(self) -> bool:
        return self._config.enabled and self._rewriter is not None

    def should_post_process(self, target: ExecutionTarget | None, result: ExecutionResult) -> bool:
        """True for successful, prose-poor output from a low-fidelity target."""
        if not self.enabled or target is None or not target.low_fidelity:
            return False
        if not result.is_success:
            return False
        return count_prose_words(result.output) < self._config.min_prose_words

    async def process(
        self,
        context: RequestContext,
        target: ExecutionTarget | None,
        result: ExecutionResult,
    ) -> tuple[ExecutionResult, bool]:
        """Rewrite ``result`` when it qualifies.

        Returns:
            The (possibly rewritten) result and whether a rewrite happened.
        """
        if not self.should_post_process(target, result):
            return result, False

        assert self._rewriter is not None
        try:
            rewritten = await asyncio.wait_for(
                self._rewriter.rewrite(context.text, result.output),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError:
            log.warning(
                "postprocess.rewrite.failed",
                target=target.id if target else None,
                error="timeout",
            )
            return result, False
        except Exception as e:
            log.warning(
                "postprocess.rewrite.failed",
                target=target.id if target else None,
                error=str(e),
            )
            return result, False

        log.info(
            "postprocess.rewrite.completed",
            target=target.id if target else None,
            original_length=len(result.output),
            rewritten_length=len(rewritten),
        )
        metadata = {**result.metadata, "post_processed": True, "raw_output": result.output}
        return ExecutionResult(ExecutionStatus.SUCCESS, output=rewritten, metadata=metadata), True
