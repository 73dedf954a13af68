"""
Tests for run_command using the current interpreter as the external tool.
"""

from __future__ import annotations

import sys

import pytest

from deckhand.backends.process import run_command
from deckhand.core.exceptions import CommandFailedError, OperationTimeoutError


@pytest.mark.asyncio
async def test_returns_stdout() -> None:
    out = await run_command([sys.executable, "-c", "print('hello')"], display="py hello")
    assert out.strip() == "hello"


@pytest.mark.asyncio
async def test_nonzero_exit_keeps_stderr_but_not_argv() -> None:
    script = "import sys; sys.stderr.write('repository not found'); sys.exit(3)"

    with pytest.raises(CommandFailedError) as excinfo:
        await run_command(
            [sys.executable, "-c", script, "oauth2:glpat-secret"], display="git clone --branch main"
        )

    err = excinfo.value
    assert err.returncode == 3
    assert "repository not found" in str(err)
    assert "git clone --branch main" in str(err)
    assert "glpat-secret" not in str(err)


@pytest.mark.asyncio
async def test_timeout_kills_the_command() -> None:
    with pytest.raises(OperationTimeoutError, match="slow tool timed out after 0.2s"):
        await run_command(
            [sys.executable, "-c", "import time; time.sleep(30)"], display="slow tool", timeout=0.2
        )


@pytest.mark.asyncio
async def test_runs_in_cwd_with_env(tmp_path) -> None:
    script = "import os; print(os.getcwd()); print(os.environ['MARKER'])"
    out = await run_command(
        [sys.executable, "-c", script], display="py", cwd=tmp_path, env={"MARKER": "set"}
    )
    cwd, marker = out.split()
    assert cwd == str(tmp_path.resolve())
    assert marker == "set"
