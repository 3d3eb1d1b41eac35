import asyncio
import logging
import sys
from pathlib import Path

from lsmux import (
    EnvironmentExperimentService,
    LanguageServerMultiplexer,
    ProposeLanguageServerBanner,
    text_document,
)
from lsmux.logging import init_default_logger

logger = logging.getLogger(__name__)


async def main(path):
    init_default_logger(logging.INFO)

    # Set LSMUX_EXPERIMENTS=pythonJediLSP to get jedi-language-server instead
    mux = LanguageServerMultiplexer(
        EnvironmentExperimentService(),
        ProposeLanguageServerBanner(),
        config={"jedi": {"executor_type": "thread", "max_workers": 2}},
    )
    mux.on_did_change_code_lenses(lambda _: logger.info("Code lenses changed"))

    document = text_document(path)
    await mux.start(str(Path(path).parent), None)

    try:
        symbols = await mux.document_symbols(document, None)
        for symbol in symbols:
            start = symbol.range.start
            logger.info(f"{symbol.name} ({symbol.kind.name}) at {start.line}:{start.character}")

            hover = await mux.hover(document, start, None)
            if hover is not None and hover.contents.value:
                logger.info(hover.contents.value.splitlines()[0])
    finally:
        mux.dispose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else __file__))
