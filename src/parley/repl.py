"""Interactive chat entrypoint: TTY runs the session loop, non-TTY reads stdin once."""

from __future__ import annotations

import sys
from typing import Callable, Optional, TextIO

from parley.config import (
    ProjectConfigError,
    Settings,
    config_exists,
    initialize_project_config,
    load_settings,
    resolve_config_root,
)
from parley.kernel.completeness import accumulate_input
from parley.kernel.coordinator import GenerationCoordinator, GenerationInterrupted
from parley.kernel.debug_log import DebugLogWriter
from parley.kernel.references import ReferenceResolver
from parley.kernel.types import GenerationRequest
from parley.prompt.system_prompt import resolve_system_prompt
from parley.providers.factory import ProviderFactory
from parley.repl_commands import (
    COMMAND_PREFIX,
    ClearRunner,
    ReplState,
    clear_screen,
    dispatch_command,
    is_exit_word,
)
from parley.ui.line_reader import LineReader, PromptToolkitReader
from parley.ui.render import SessionLabels, echo, echo_styled, is_tty, render_notice
from parley.ui.speech import Speaker, SystemSpeaker
from parley.ui.typewriter import TypewriterRenderer

CONTINUATION_PROMPT = "... "
GOODBYE_TEXT = "Goodbye!"

SettingsLoader = Callable[[], Settings]


class ChatSession:
    """One interactive conversation: variables, backend handle and output sink."""

    def __init__(
        self,
        *,
        settings_loader: SettingsLoader,
        reader: LineReader,
        provider_factory: Optional[ProviderFactory] = None,
        stream: Optional[TextIO] = None,
        speaker: Optional[Speaker] = None,
        log: Optional[DebugLogWriter] = None,
        resolver: Optional[ReferenceResolver] = None,
        coordinator: Optional[GenerationCoordinator] = None,
        renderer: Optional[TypewriterRenderer] = None,
        is_tty_stream: Optional[bool] = None,
        clear_runner: Optional[ClearRunner] = None,
    ) -> None:
        self._settings_loader = settings_loader
        self._settings = settings_loader()
        self._reader = reader
        self._provider_factory = provider_factory or ProviderFactory()
        self._stream = stream or sys.stdout
        self._is_tty_stream = is_tty(self._stream, is_tty_stream)
        self._log = log or DebugLogWriter.from_settings(self._settings)
        self._resolver = resolver or ReferenceResolver(
            timeout_sec=self._settings.url_timeout_sec,
            log=self._log,
        )
        self._coordinator = coordinator or GenerationCoordinator(
            stream=self._stream,
            timeout_sec=self._settings.generation_timeout_sec,
            log=self._log,
        )
        self.labels = SessionLabels.build(
            self._settings.user_name,
            self._settings.vendor,
            color=self._is_tty_stream,
        )
        self._renderer = renderer or TypewriterRenderer(
            self._stream,
            speaker=speaker,
            label=self.labels.assistant,
            markdown=self._is_tty_stream,
            log=self._log,
        )
        self.state = ReplState(
            provider=self._provider_factory.build(self._settings),
            rebuild_provider=self._rebuild_provider,
            log=self._log,
            is_tty_stream=self._is_tty_stream,
            clear_runner=clear_runner,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def variables(self):
        return self.state.variables

    def run(self) -> int:
        self._log.info(
            "session",
            "chat session started",
            vendor=self._settings.vendor,
            model=self._settings.model,
        )
        clear_screen(self._stream, self.state)
        prompt = "{0}\n".format(self.labels.user)

        while True:
            try:
                line = self._reader.read_line(prompt)
            except KeyboardInterrupt:
                echo_styled(self._stream, "Interrupted", "error", self._is_tty_stream)
                continue
            except EOFError:
                echo_styled(self._stream, GOODBYE_TEXT, "success", self._is_tty_stream)
                break

            text = line.strip()
            if not text:
                continue

            try:
                if text.startswith(COMMAND_PREFIX) or is_exit_word(text):
                    result = dispatch_command(text, self.state, self._stream)
                    if result.exit_requested:
                        echo_styled(self._stream, GOODBYE_TEXT, "success", self._is_tty_stream)
                        break
                    continue

                full_text = accumulate_input(text, self._read_continuation)
                reply = self.ask(full_text)
                self._renderer.render(reply, self.state.variables)
            except (KeyboardInterrupt, GenerationInterrupted):
                echo(self._stream)
                echo_styled(self._stream, "Interrupted", "error", self._is_tty_stream)
            except Exception as exc:
                self._log.error("session", "failed to process input", error=str(exc))
                echo_styled(self._stream, render_notice("error", str(exc)), "error", self._is_tty_stream)

        self._log.info("session", "chat session ended")
        return 0

    def ask(self, text: str) -> str:
        """Enrich ``text`` with its references and return the backend reply."""

        enriched = self._resolver.enrich(text)
        request = GenerationRequest(
            system_prompt=resolve_system_prompt(self._settings),
            user_text=enriched,
            model=self._settings.model,
        )
        self._log.info(
            "session",
            "sending prompt",
            chars=len(enriched),
            enriched=enriched != text,
        )
        return self._coordinator.generate(self.state.provider, request)

    def close(self) -> None:
        try:
            self._stream.flush()
        finally:
            self._log.close()

    def _read_continuation(self) -> Optional[str]:
        try:
            return self._reader.read_line(CONTINUATION_PROMPT)
        except EOFError:
            return None

    def _rebuild_provider(self):
        self._settings = self._settings_loader()
        return self._provider_factory.build(self._settings)


def ensure_config(stream: Optional[TextIO] = None) -> None:
    """Write the default configuration on first launch."""

    if config_exists(resolve_config_root()):
        return
    config_root = initialize_project_config(force=False)
    echo(
        stream or sys.stdout,
        render_notice("info", "Configuration was missing and has been initialized at: {0}".format(config_root)),
    )


def run_once(
    text: str,
    *,
    settings: Settings,
    provider_factory: Optional[ProviderFactory] = None,
    stream: Optional[TextIO] = None,
    log: Optional[DebugLogWriter] = None,
    resolver: Optional[ReferenceResolver] = None,
    coordinator: Optional[GenerationCoordinator] = None,
) -> int:
    """Enrich, generate and print one prompt without the interactive loop."""

    stream = stream or sys.stdout
    writer = log or DebugLogWriter.from_settings(settings)
    try:
        provider = (provider_factory or ProviderFactory()).build(settings)
        resolver = resolver or ReferenceResolver(timeout_sec=settings.url_timeout_sec, log=writer)
        coordinator = coordinator or GenerationCoordinator(
            stream=stream,
            timeout_sec=settings.generation_timeout_sec,
            log=writer,
        )
        request = GenerationRequest(
            system_prompt=resolve_system_prompt(settings),
            user_text=resolver.enrich(text),
            model=settings.model,
        )
        echo(stream, coordinator.generate(provider, request))
        return 0
    finally:
        if log is None:
            writer.close()


def start_repl(
    *,
    vendor: Optional[str] = None,
    model: Optional[str] = None,
    stream: Optional[TextIO] = None,
    err_stream: Optional[TextIO] = None,
    stdin: Optional[TextIO] = None,
    reader: Optional[LineReader] = None,
    provider_factory: Optional[ProviderFactory] = None,
    speaker: Optional[Speaker] = None,
) -> int:
    """Start a chat session.

    Raises ``TerminalInitError`` when the line editor cannot be set up.
    """

    stream = stream or sys.stdout
    err_stream = err_stream or sys.stderr
    try:
        ensure_config(stream)
        settings = load_settings(vendor=vendor, model=model)
    except ProjectConfigError as exc:
        echo(err_stream, render_notice("error", str(exc)))
        return 2

    source = stdin or sys.stdin
    if not is_tty(source):
        stdin_text = source.read().strip()
        if not stdin_text:
            echo(
                err_stream,
                render_notice("error", 'No stdin payload. Use `parley run "..."` or pipe text to stdin.'),
            )
            return 2
        return run_once(stdin_text, settings=settings, provider_factory=provider_factory, stream=stream)

    session = ChatSession(
        settings_loader=lambda: load_settings(vendor=vendor, model=model),
        reader=reader or PromptToolkitReader(settings.history_file),
        provider_factory=provider_factory,
        stream=stream,
        speaker=speaker or SystemSpeaker(),
    )
    try:
        return session.run()
    finally:
        session.close()
