"""Light language-server backend that runs jedi in an executor.

Every request is a single ``jedi.Script`` query executed by a module-level
worker function, inside a ProcessPoolExecutor (the default) or a
ThreadPoolExecutor. No protocol connection is involved.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Optional

import jedi
from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionOptions,
    DocumentSymbol,
    Hover,
    Location,
    MarkupContent,
    MarkupKind,
    ParameterInformation,
    Position,
    Range,
    ServerCapabilities,
    SignatureHelp,
    SignatureHelpOptions,
    SignatureInformation,
    SymbolKind,
    TextEdit,
    WorkspaceEdit,
)

from ..errors import BackendNotStartedError
from ..events import EventEmitter
from ..types import document_path, path_to_uri
from .base import BaseLanguageServer

logger = logging.getLogger(__name__)

_COMPLETION_KINDS = {
    "module": CompletionItemKind.Module,
    "class": CompletionItemKind.Class,
    "instance": CompletionItemKind.Variable,
    "function": CompletionItemKind.Function,
    "param": CompletionItemKind.Variable,
    "path": CompletionItemKind.File,
    "keyword": CompletionItemKind.Keyword,
    "property": CompletionItemKind.Property,
    "statement": CompletionItemKind.Variable,
}

_SYMBOL_KINDS = {
    "module": SymbolKind.Module,
    "class": SymbolKind.Class,
    "instance": SymbolKind.Variable,
    "function": SymbolKind.Function,
    "param": SymbolKind.Variable,
    "property": SymbolKind.Property,
    "statement": SymbolKind.Variable,
}


def _capabilities() -> ServerCapabilities:
    return ServerCapabilities(
        rename_provider=True,
        definition_provider=True,
        hover_provider=True,
        references_provider=True,
        completion_provider=CompletionOptions(trigger_characters=["."]),
        document_symbol_provider=True,
        signature_help_provider=SignatureHelpOptions(trigger_characters=["(", ","]),
    )


# Worker functions run inside the executor and must stay picklable, so they
# take plain values and return lsprotocol types, which pickle as attrs classes.


def _script(source: str, path: str, environment_path: Optional[str]) -> jedi.Script:
    environment = (
        jedi.create_environment(environment_path, safe=False)
        if environment_path
        else None
    )
    return jedi.Script(code=source, path=path, environment=environment)


def _name_range(name) -> Optional[Range]:
    if name.line is None or name.column is None:
        return None
    start = Position(line=name.line - 1, character=name.column)
    end = Position(line=name.line - 1, character=name.column + len(name.name))
    return Range(start=start, end=end)


def _name_location(name, fallback_path: str) -> Optional[Location]:
    rng = _name_range(name)
    if rng is None:
        return None
    path = name.module_path or fallback_path
    return Location(uri=path_to_uri(Path(path)), range=rng)


def _rename_worker(source, path, environment_path, line, character, new_name):
    refactoring = _script(source, path, environment_path).rename(
        line + 1, character, new_name=new_name
    )
    changes = {}
    for changed_path, changed_file in refactoring.get_changed_files().items():
        changed_path = Path(changed_path)
        if str(changed_path) == str(Path(path)):
            old_text = source
        else:
            old_text = changed_path.read_text(encoding="utf-8")
        old_lines = old_text.splitlines(keepends=True)
        last_line = old_lines[-1] if old_lines else ""
        # Replace the whole file, ending after the last character
        if last_line.endswith(("\n", "\r")):
            end = Position(line=len(old_lines), character=0)
        else:
            end = Position(line=max(len(old_lines) - 1, 0), character=len(last_line))
        edit = TextEdit(
            range=Range(start=Position(line=0, character=0), end=end),
            new_text=changed_file.get_new_code(),
        )
        changes[path_to_uri(changed_path)] = [edit]
    return WorkspaceEdit(changes=changes)


def _definition_worker(source, path, environment_path, line, character):
    names = _script(source, path, environment_path).goto(
        line + 1, character, follow_imports=True
    )
    locations = (_name_location(n, path) for n in names)
    return [loc for loc in locations if loc is not None]


def _hover_worker(source, path, environment_path, line, character):
    names = _script(source, path, environment_path).help(line + 1, character)
    sections = []
    for name in names:
        docstring = name.docstring()
        if docstring:
            sections.append(f"```text\n{docstring}\n```")
    if not sections:
        return None
    return Hover(
        contents=MarkupContent(kind=MarkupKind.Markdown, value="\n\n".join(sections))
    )


def _references_worker(
    source, path, environment_path, line, character, include_declaration
):
    names = _script(source, path, environment_path).get_references(
        line + 1, character, include_builtins=False
    )
    if not include_declaration:
        names = [n for n in names if not n.is_definition()]
    locations = (_name_location(n, path) for n in names)
    return [loc for loc in locations if loc is not None]


def _completion_worker(source, path, environment_path, line, character):
    completions = _script(source, path, environment_path).complete(
        line + 1, character
    )
    return [
        CompletionItem(
            label=c.name,
            kind=_COMPLETION_KINDS.get(c.type, CompletionItemKind.Text),
            detail=c.description,
            insert_text=c.name,
        )
        for c in completions
    ]


def _symbols_worker(source, path, environment_path):
    names = _script(source, path, environment_path).get_names(
        all_scopes=True, definitions=True
    )
    symbols = []
    for name in names:
        rng = _name_range(name)
        if rng is None:
            continue
        symbols.append(
            DocumentSymbol(
                name=name.name,
                kind=_SYMBOL_KINDS.get(name.type, SymbolKind.Variable),
                range=rng,
                selection_range=rng,
                detail=name.description,
            )
        )
    return symbols


def _signature_worker(source, path, environment_path, line, character):
    signatures = _script(source, path, environment_path).get_signatures(
        line + 1, character
    )
    if not signatures:
        return None
    infos = [
        SignatureInformation(
            label=s.to_string(),
            documentation=s.docstring(raw=True) or None,
            parameters=[ParameterInformation(label=p.to_string()) for p in s.params],
        )
        for s in signatures
    ]
    return SignatureHelp(
        signatures=infos, active_signature=0, active_parameter=signatures[0].index
    )


class JediLauncher(BaseLanguageServer):
    """Minimal process-based provider built on the jedi library."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        config = config or {}
        self.executor_type = config.get("executor_type", "process")
        self.max_workers = config.get("max_workers", 1)
        if self.executor_type not in ("process", "thread"):
            raise ValueError(
                f"executor_type must be 'process' or 'thread', "
                f"got {self.executor_type!r}"
            )

        self.executor: Optional[Executor] = None
        self.environment_path: Optional[str] = config.get("environment_path")
        self.resource = None
        self._active = False
        self._on_did_change_code_lenses = EventEmitter()

    async def start(self, resource, interpreter):
        if self.executor is None:
            if self.executor_type == "process":
                self.executor = ProcessPoolExecutor(max_workers=self.max_workers)
            else:
                self.executor = ThreadPoolExecutor(max_workers=self.max_workers)

        self.resource = resource
        if interpreter is not None:
            self.environment_path = interpreter.path
        self._active = True

        logger.info(
            f"Jedi launcher started with {type(self.executor).__name__} "
            f"(max_workers={self.max_workers}, "
            f"environment={self.environment_path or 'default'})"
        )

    def activate(self):
        self._active = True

    def deactivate(self):
        self._active = False

    def dispose(self):
        if self.executor is not None:
            self.executor.shutdown(wait=False, cancel_futures=True)
            self.executor = None
        self._active = False
        self._on_did_change_code_lenses.dispose()
        logger.debug("Jedi launcher disposed")

    @property
    def connection(self):
        return None

    @property
    def capabilities(self):
        return _capabilities()

    @property
    def on_did_change_code_lenses(self):
        return self._on_did_change_code_lenses.event

    async def _run(self, token, empty, worker: Callable, document, *args):
        if self.executor is None:
            raise BackendNotStartedError("Jedi launcher used before start()")
        if not self._active or (token is not None and token.is_cancellation_requested):
            return empty

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            self.executor,
            worker,
            document.text,
            str(document_path(document)),
            self.environment_path,
            *args,
        )

        # Too late to stop jedi, but the caller no longer wants the answer
        if token is not None and token.is_cancellation_requested:
            return empty
        return result

    async def rename_edits(self, document, position, new_name, token):
        return await self._run(
            token,
            None,
            _rename_worker,
            document,
            position.line,
            position.character,
            new_name,
        )

    async def definition(self, document, position, token):
        return await self._run(
            token, [], _definition_worker, document, position.line, position.character
        )

    async def hover(self, document, position, token):
        return await self._run(
            token, None, _hover_worker, document, position.line, position.character
        )

    async def references(self, document, position, context, token):
        include_declaration = context.include_declaration if context else True
        return await self._run(
            token,
            [],
            _references_worker,
            document,
            position.line,
            position.character,
            include_declaration,
        )

    async def completion_items(self, document, position, token, context):
        return await self._run(
            token, [], _completion_worker, document, position.line, position.character
        )

    async def code_lenses(self, document, token):
        if self.executor is None:
            raise BackendNotStartedError("Jedi launcher used before start()")
        return []

    async def document_symbols(self, document, token):
        return await self._run(token, [], _symbols_worker, document)

    async def signature_help(self, document, position, token, context):
        return await self._run(
            token, None, _signature_worker, document, position.line, position.character
        )
