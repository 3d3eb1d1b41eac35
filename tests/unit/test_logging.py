import json
import logging

import pytest

from lsmux.logging import (
    StructuredLogger,
    _ColoredFormatter,
    _short_name,
    _StructuredFormatter,
    init_default_logger,
)


@pytest.fixture
def isolated_logger():
    logger = logging.getLogger("lsmux.tests.logging")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("", "unknown"),
        ("__main__", "main"),
        ("lsmux.multiplexer", "multiplexer"),
        ("lsmux.backends.jedi_launcher", "backend(jedi_launcher)"),
    ],
)
def test_short_name(name, expected):
    assert _short_name(name) == expected


def test_colored_formatter_without_colors():
    record = logging.LogRecord(
        "lsmux.backends.lsp_client", logging.WARNING, __file__, 1, "slow", (), None
    )

    line = _ColoredFormatter(use_colors=False).format(record)

    assert "\033[" not in line
    assert "WARNING" in line
    assert "[backend(lsp_client)]" in line
    assert line.endswith("slow")


def test_structured_formatter_keeps_extra_fields():
    record = logging.LogRecord(
        "lsmux.multiplexer", logging.INFO, __file__, 1, "selected %s", ("jedi",), None
    )
    record.backend = "jedi"

    data = json.loads(_StructuredFormatter().format(record))

    assert data["message"] == "selected jedi"
    assert data["logger"] == "lsmux.multiplexer"
    assert data["backend"] == "jedi"
    assert "args" not in data


def test_init_default_logger_writes_files(tmp_path, isolated_logger):
    log_file = tmp_path / "logs" / "lsmux.log"

    logger = init_default_logger(
        logging.DEBUG,
        output_file=log_file,
        use_colors=False,
        clear_handlers=True,
        logger_name=isolated_logger.name,
        structured_logging=True,
    )
    StructuredLogger(logger).info("backend ready", backend="jedi_lsp")
    for handler in logger.handlers:
        handler.flush()

    assert "backend ready" in log_file.read_text()
    structured = [
        json.loads(line)
        for line in log_file.with_suffix(".json").read_text().splitlines()
    ]
    assert {"message": "backend ready", "backend": "jedi_lsp"}.items() <= structured[
        -1
    ].items()
