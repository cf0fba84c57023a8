"""Tests for shell hook generation."""

import pytest

from ghctx.errors import UnsupportedShellError
from ghctx.shell_hook import SUPPORTED_SHELLS, render_hook


@pytest.mark.parametrize("shell", SUPPORTED_SHELLS)
def test_every_shell_reads_binding_and_active_file(shell):
    hook = render_hook(shell)
    assert ".ghcontext" in hook
    assert "contexts" in hook and "active" in hook
    assert "ghctx use" in hook


def test_default_is_bash():
    hook = render_hook()
    assert "PROMPT_COMMAND=" in hook
    assert "${XDG_CONFIG_HOME:-$HOME/.config}/gh/contexts/active" in hook


def test_zsh_uses_precmd():
    hook = render_hook("zsh")
    assert "add-zsh-hook precmd __ghctx_auto_apply" in hook
    assert "PROMPT_COMMAND" not in hook


def test_pwsh_is_powershell():
    assert render_hook("pwsh") == render_hook("powershell")


def test_fish_runs_on_pwd_change():
    assert "--on-variable PWD" in render_hook("fish")


def test_unsupported_shell():
    with pytest.raises(UnsupportedShellError, match="tcsh"):
        render_hook("tcsh")
