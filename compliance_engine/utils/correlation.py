# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Evaluation run ID generation and context management.

Every evaluation pass gets a run ID stored in a context variable so log
records from the engine, the predicates and the reporter can be tied
back to the same pass.
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Iterator

# Context variable to store the run ID of the current evaluation
_run_id_context: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="")


def generate_run_id() -> str:
    """
    Generate a unique run ID using UUID4.

    Returns:
        A unique run ID string in UUID4 format
    """
    return str(uuid.uuid4())


def set_run_id(run_id: str) -> contextvars.Token:
    """Set the run ID in the current context."""
    return _run_id_context.set(run_id)


def get_run_id() -> str:
    """
    Get the run ID from the current context.

    Returns:
        The run ID if set, or an empty string if not set
    """
    return _run_id_context.get()


@contextmanager
def run_context(run_id: str | None = None) -> Iterator[str]:
    """Bind a run ID for the duration of a block, restoring the previous one afterwards."""
    token = set_run_id(run_id or generate_run_id())
    try:
        yield get_run_id()
    finally:
        _run_id_context.reset(token)


def get_run_id_for_logging() -> dict:
    """
    Get the run ID as a dictionary for use in logging extra fields.

    Returns:
        Dictionary with run_id key, or empty dict if not set
    """
    run_id = get_run_id()
    if run_id:
        return {"run_id": run_id}
    return {}
