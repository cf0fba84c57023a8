"""Shell integration snippets that apply a repository's bound context on cd."""

from ghctx.errors import UnsupportedShellError

SUPPORTED_SHELLS = ("bash", "zsh", "powershell", "pwsh", "fish")

_POSIX_FUNCTION = """\
# ghctx: apply the context bound in .ghcontext when entering a repository
# Add this to your {rc_file}

__ghctx_auto_apply() {{
  local root
  root="$(git rev-parse --show-toplevel 2>/dev/null)" || return 0

  if [[ -f "$root/.ghcontext" ]]; then
    local name current active_file
    name="$(cat "$root/.ghcontext")"
    active_file="${{XDG_CONFIG_HOME:-$HOME/.config}}/gh/contexts/active"
    current=""
    [[ -f "$active_file" ]] && current="$(cat "$active_file")"

    if [[ "$current" != "$name" ]]; then
      echo "• Auto-applying gh context: $name"
      ghctx use "$name" 2>/dev/null || true
    fi
  fi
}}
"""

_BASH_REGISTER = """
PROMPT_COMMAND="__ghctx_auto_apply${PROMPT_COMMAND:+;$PROMPT_COMMAND}"
"""

_ZSH_REGISTER = """
autoload -U add-zsh-hook
add-zsh-hook precmd __ghctx_auto_apply
"""

_POWERSHELL = """\
# ghctx: apply the context bound in .ghcontext when entering a repository
# Add this to your PowerShell profile ($PROFILE)

function Invoke-GhctxAutoApply {
    $root = git rev-parse --show-toplevel 2>$null
    if (-not $root) { return }

    $bindingFile = Join-Path $root ".ghcontext"
    if (Test-Path $bindingFile) {
        $name = (Get-Content $bindingFile -Raw).Trim()

        $configDir = if ($env:XDG_CONFIG_HOME) { $env:XDG_CONFIG_HOME } else { "$env:APPDATA" }
        $activeFile = Join-Path $configDir "gh\\contexts\\active"
        $current = ""
        if (Test-Path $activeFile) {
            $current = (Get-Content $activeFile -Raw).Trim()
        }

        if ($current -ne $name) {
            Write-Host "• Auto-applying gh context: $name"
            ghctx use $name 2>$null
        }
    }
}

$__ghctxOriginalPrompt = $function:prompt
function prompt {
    Invoke-GhctxAutoApply
    & $__ghctxOriginalPrompt
}
"""

_FISH = """\
# ghctx: apply the context bound in .ghcontext when entering a repository
# Add this to your ~/.config/fish/config.fish

function __ghctx_auto_apply --on-variable PWD
    set -l root (git rev-parse --show-toplevel 2>/dev/null)
    if test -z "$root"
        return
    end

    set -l binding_file "$root/.ghcontext"
    if test -f $binding_file
        set -l name (cat $binding_file | string trim)

        set -l config_dir ~/.config
        if test -n "$XDG_CONFIG_HOME"
            set config_dir $XDG_CONFIG_HOME
        end

        set -l active_file "$config_dir/gh/contexts/active"
        set -l current ""
        if test -f $active_file
            set current (cat $active_file | string trim)
        end

        if test "$current" != "$name"
            echo "• Auto-applying gh context: $name"
            ghctx use $name 2>/dev/null
        end
    end
end
"""


def render_hook(shell: str = "bash") -> str:
    """Return the integration snippet for a shell.

    Args:
        shell: One of SUPPORTED_SHELLS.

    Returns:
        Shell source to append to the user's rc file.

    Raises:
        UnsupportedShellError: If the shell is not supported.
    """
    if shell == "bash":
        return _POSIX_FUNCTION.format(rc_file="~/.bashrc") + _BASH_REGISTER
    if shell == "zsh":
        return _POSIX_FUNCTION.format(rc_file="~/.zshrc") + _ZSH_REGISTER
    if shell in ("powershell", "pwsh"):
        return _POWERSHELL
    if shell == "fish":
        return _FISH

    raise UnsupportedShellError(
        f"Unsupported shell: {shell} (supported: {', '.join(SUPPORTED_SHELLS)})"
    )
