"""Scripted pygls language server used by the integration tests.

Answers every request with a canned result derived from the request
parameters, so tests can assert on what actually went over the wire. The
``fake.state`` command returns what the server has seen as a JSON string.

Hover positions on a few magic lines misbehave on purpose: line 42 fails,
line 99 never answers and line 7 kills the process.
"""

import asyncio
import json
import os

from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_CODE_LENS,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DEFINITION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_REFERENCES,
    TEXT_DOCUMENT_RENAME,
    TEXT_DOCUMENT_SIGNATURE_HELP,
    WORKSPACE_CODE_LENS_REFRESH,
    CodeLens,
    Command,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    DocumentSymbol,
    Hover,
    Location,
    LocationLink,
    MarkupContent,
    MarkupKind,
    ParameterInformation,
    Position,
    Range,
    SignatureHelp,
    SignatureInformation,
    SymbolKind,
    TextEdit,
    WorkspaceEdit,
)
from pygls.lsp.server import LanguageServer

FAIL_LINE = 42
HANG_LINE = 99
EXIT_LINE = 7

server = LanguageServer("fake-ls", "0.1.0")

state = {"documents": {}, "cancelled": [], "initialization_options": None}


def span(line: int, character: int, length: int = 1) -> Range:
    return Range(
        start=Position(line=line, character=character),
        end=Position(line=line, character=character + length),
    )


@server.feature(INITIALIZE)
def initialize(ls: LanguageServer, params) -> None:
    state["initialization_options"] = params.initialization_options


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params) -> None:
    document = params.text_document
    state["documents"][document.uri] = {
        "version": document.version,
        "text": document.text,
        "changes": 0,
    }


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params) -> None:
    document = state["documents"][params.text_document.uri]
    document["version"] = params.text_document.version
    document["text"] = params.content_changes[-1].text
    document["changes"] += 1


@server.feature(TEXT_DOCUMENT_HOVER)
async def hover(ls: LanguageServer, params) -> Hover:
    line, character = params.position.line, params.position.character
    if line == FAIL_LINE:
        raise RuntimeError("hover exploded")
    if line == EXIT_LINE:
        os._exit(0)
    if line == HANG_LINE:
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            state["cancelled"].append(line)
            raise
    return Hover(
        contents=MarkupContent(kind=MarkupKind.Markdown, value=f"hover {line}:{character}"),
        range=span(line, character, 3),
    )


@server.feature(TEXT_DOCUMENT_DEFINITION)
def definition(ls: LanguageServer, params) -> list[LocationLink]:
    position = params.position
    return [
        LocationLink(
            target_uri=params.text_document.uri,
            target_range=span(0, 0, 10),
            target_selection_range=span(position.line, position.character, 2),
        )
    ]


@server.feature(TEXT_DOCUMENT_REFERENCES)
def references(ls: LanguageServer, params) -> list[Location]:
    uri, position = params.text_document.uri, params.position
    locations = [Location(uri=uri, range=span(position.line + 1, 0))]
    if params.context.include_declaration:
        locations.insert(0, Location(uri=uri, range=span(position.line, position.character)))
    return locations


@server.feature(TEXT_DOCUMENT_RENAME)
def rename(ls: LanguageServer, params) -> WorkspaceEdit:
    position = params.position
    edit = TextEdit(range=span(position.line, position.character), new_text=params.new_name)
    return WorkspaceEdit(changes={params.text_document.uri: [edit]})


@server.feature(TEXT_DOCUMENT_COMPLETION)
def completion(ls: LanguageServer, params) -> CompletionList:
    trigger = params.context.trigger_character if params.context else None
    return CompletionList(
        is_incomplete=False,
        items=[
            CompletionItem(label="alpha"),
            CompletionItem(label=f"beta{trigger or ''}", kind=CompletionItemKind.Function),
        ],
    )


@server.feature(TEXT_DOCUMENT_CODE_LENS)
def code_lens(ls: LanguageServer, params) -> list[CodeLens]:
    return [
        CodeLens(range=span(0, 0), command=Command(title="1 reference", command="show.refs"))
    ]


@server.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(ls: LanguageServer, params) -> list[DocumentSymbol]:
    return [
        DocumentSymbol(
            name="main",
            kind=SymbolKind.Function,
            range=span(0, 0, 20),
            selection_range=span(0, 4, 4),
        )
    ]


@server.feature(TEXT_DOCUMENT_SIGNATURE_HELP)
def signature_help(ls: LanguageServer, params) -> SignatureHelp:
    return SignatureHelp(
        signatures=[
            SignatureInformation(
                label="main(a, b)",
                parameters=[
                    ParameterInformation(label="a"),
                    ParameterInformation(label="b"),
                ],
            )
        ],
        active_signature=0,
        active_parameter=1,
    )


@server.command("fake.state")
def report_state(ls: LanguageServer, *args) -> str:
    return json.dumps(state)


@server.command("fake.refreshCodeLenses")
def refresh_code_lenses(ls: LanguageServer, *args) -> bool:
    ls.protocol.send_request(WORKSPACE_CODE_LENS_REFRESH, None)
    return True


if __name__ == "__main__":
    server.start_io()
