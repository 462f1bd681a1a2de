# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Structured logging for monorelease.

Every module logs through `structlog <https://www.structlog.org/>`_ with
snake_case event names and key/value context::

    log.info('project_bumped', project='api', old='1.2.0', new='1.2.1')

Two renderers are available:

- **Console** (default): human-readable, colored when stderr is a TTY.
- **JSON** (``--json-log``): one JSON object per line, for CI logs.

Output always goes to stderr so stdout stays free for command output
such as the ``init`` preview or ``explain`` text.
"""

from __future__ import annotations

import logging
import sys

import structlog

_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt='iso'),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
)


def level_for(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the ``-v``/``-q`` flags to a stdlib level; ``quiet`` wins."""
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route structlog events through one stderr handler.

    The last call wins, so tests may reconfigure freely.

    Args:
        verbose: Also show debug events (git commands, log queries).
        quiet: Only show warnings and errors.
        json_log: Render events as JSON instead of console text.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level_for(verbose=verbose, quiet=quiet),
        force=True,
    )

    renderer: structlog.types.Processor
    if json_log:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'monorelease') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger named ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'configure_logging',
    'get_logger',
    'level_for',
]
