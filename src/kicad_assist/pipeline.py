"""Pipeline orchestrator: prompt -> generator -> mined commands -> edits.

Host edits only ever run on the calling thread. Generation runs on a single
worker thread; streamed chunks are handed back through a queue and the
caller's ``on_chunk`` is invoked on the calling thread in arrival order.

Mined commands run in three passes: placements, then connections, then
everything else. Between the placement and connection passes the design is
marked modified so that newly placed symbols are annotated before any wire
refers to them.
"""

from __future__ import annotations

import contextvars
import queue
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from .commands.actions import Action, PassKey
from .commands.miner import mine
from .commands.parser import parse, parse_command
from .config import Settings
from .constants import CANCELLED_MESSAGE, NO_COMMANDS_FOUND, UNRECOGNIZED_COMMAND
from .context import collect_context
from .exceptions import CancelledError, GeneratorTimeoutError, GeneratorUnavailableError
from .executor.dispatcher import ActionExecutor
from .generator.cancel import CancelToken
from .generator.ollama import OllamaClient
from .host.base import HostHandle
from .logging_config import create_logger, run_context
from .schema.context import ContextSnapshot
from .schema.results import CommandResult, GeneratorResponse

logger = create_logger(__name__)

ChunkCallback = Callable[[str], None]

_DEGRADED_CODES = frozenset({GeneratorUnavailableError.error_code, GeneratorTimeoutError.error_code})
_END_OF_STREAM = object()


class AssistantPipeline:
    """Turns a user request into executed design actions for one host."""

    def __init__(
        self,
        host: HostHandle,
        client: OllamaClient | None = None,
        settings: Settings | None = None,
    ):
        self.host = host
        self.client = client
        self.settings = settings or Settings()

    # ── Entry points ───────────────────────────────────────────────

    def run(
        self,
        prompt: str,
        on_chunk: ChunkCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> CommandResult:
        """Handle one user request end to end."""
        token = cancel_token or CancelToken()
        with run_context() as run_id:
            logger.info(f"Run {run_id} started ({len(prompt)} chars)")
            try:
                return self._run(prompt, on_chunk, token)
            except CancelledError:
                logger.info(f"Run {run_id} cancelled")
                return CommandResult.ok(CANCELLED_MESSAGE, cancelled=True)

    def _run(self, prompt: str, on_chunk: ChunkCallback | None, token: CancelToken) -> CommandResult:
        token.raise_if_cancelled()
        context = collect_context(self.host, self.settings)

        if self.client is None or not self.client.is_available():
            logger.info("Generator unavailable, parsing the request directly")
            return self._direct(prompt, context, token)

        response = self._generate(prompt, context, on_chunk, token)
        token.raise_if_cancelled()

        if not response.success:
            if response.error_code in _DEGRADED_CODES:
                logger.warning(f"Generator failed ({response.error}), parsing the request directly")
                return self._direct(prompt, context, token)
            return CommandResult.fail(f"Error: {response.error}")

        commands = mine(response.text)
        if not commands:
            direct = self._direct(prompt, context, token)
            if direct.success:
                return CommandResult.ok(f"{response.text}\n\n{direct.message}")
            return CommandResult.ok(response.text)

        return self._execute_commands(commands, context, token, response.text)

    def execute_command(self, line: str) -> CommandResult:
        """Parse and execute a single command line without the generator."""
        with run_context():
            return self._direct(line, collect_context(self.host, self.settings))

    def execute_response(self, text: str, cancel_token: CancelToken | None = None) -> CommandResult:
        """Mine and execute commands from already generated text."""
        commands = mine(text)
        if not commands:
            return CommandResult.fail(NO_COMMANDS_FOUND)
        with run_context():
            context = collect_context(self.host, self.settings)
            return self._execute_commands(commands, context, cancel_token or CancelToken())

    # ── Generation ─────────────────────────────────────────────────

    def _generate(
        self,
        prompt: str,
        context: ContextSnapshot,
        on_chunk: ChunkCallback | None,
        token: CancelToken,
    ) -> GeneratorResponse:
        assert self.client is not None
        client = self.client
        chunks: queue.Queue[object] = queue.Queue()

        def stream() -> GeneratorResponse:
            try:
                return client.generate_streaming(prompt, context, chunks.put, token)
            finally:
                chunks.put(_END_OF_STREAM)

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="kicad-assist-gen") as pool:
            if on_chunk is None:
                token.raise_if_cancelled()
                return pool.submit(contextvars.copy_context().run, client.generate, prompt, context).result()

            future = pool.submit(contextvars.copy_context().run, stream)
            try:
                while (chunk := chunks.get()) is not _END_OF_STREAM:
                    on_chunk(chunk)  # type: ignore[arg-type]
            except BaseException:
                token.cancel()
                raise
            return future.result()

    # ── Execution ──────────────────────────────────────────────────

    def _direct(
        self, text: str, context: ContextSnapshot, token: CancelToken | None = None
    ) -> CommandResult:
        parsed = parse_command(text.strip())
        if parsed.action is None:
            logger.debug(f"Direct parse rejected {text!r}: {parsed.error}")
            return CommandResult.fail(UNRECOGNIZED_COMMAND, message=parsed.error or "")
        if token is not None:
            token.raise_if_cancelled()
        return ActionExecutor(self.host, context, self.settings).execute(parsed.action)

    def _execute_commands(
        self,
        commands: list[str],
        context: ContextSnapshot,
        token: CancelToken,
        explanation: str = "",
    ) -> CommandResult:
        executor = ActionExecutor(self.host, context, self.settings)

        passes: dict[PassKey, list[tuple[str, Action | None]]] = {key: [] for key in PassKey}
        for line in commands:
            action = parse(line)
            key = action.pass_key if action is not None else PassKey.OTHER
            passes[key].append((line, action))

        report: list[str] = []
        ok_count = fail_count = 0
        placed = False
        cancelled = False

        for key in sorted(PassKey):
            if token.is_cancelled:
                cancelled = True
                break
            if key is PassKey.CONNECTION and placed:
                executor.prepare_connection_pass()

            for line, action in passes[key]:
                if token.is_cancelled:
                    cancelled = True
                    break
                if action is None:
                    result = CommandResult.fail(UNRECOGNIZED_COMMAND)
                    shown = line
                else:
                    result = executor.execute(action)
                    shown = action.to_command()

                if result.success:
                    ok_count += 1
                    placed = placed or key is PassKey.PLACEMENT
                    report.append(f"✓ {shown}")
                else:
                    fail_count += 1
                    report.append(f"✗ {shown} ({result.error})")
            if cancelled:
                break

        header = f"Executed {ok_count} command(s)"
        if fail_count:
            header += f", {fail_count} failed"
        message = "\n".join([header + ":", *report])
        if cancelled:
            message += f"\n{CANCELLED_MESSAGE}"
        if explanation:
            message += f"\n\n{explanation}"

        logger.info(f"Executed {ok_count} command(s), {fail_count} failed")
        if ok_count == 0 and fail_count > 0:
            return CommandResult.fail(f"{fail_count} command(s) failed", message=message)
        return CommandResult(success=True, message=message, cancelled=cancelled)
