"""todo install — shell, tmux, menu bar and notification integrations."""

import sys

from fncli import cli

from .config import Config
from .lib import ansi
from .lib.errors import echo
from .lib.install import install_agent, parse_time, reminder_plist, write_xbar_plugin

MORNING_LABEL = "com.todo.morning-reminder"
EVENING_LABEL = "com.todo.evening-reminder"
MORNING_MESSAGE = "Time for your morning focus!"
EVENING_MESSAGE = "Time for your evening reflection!"

STATUS_COMMAND = "todo --use-cache status --format short"

ZSH_SNIPPET = f"""# todo: status in the right prompt, refreshed from the cache
todo_prompt_status() {{ {STATUS_COMMAND} 2>/dev/null }}
setopt PROMPT_SUBST
RPROMPT='$(todo_prompt_status)'
"""

TMUX_SNIPPET = f"""# todo: status in the tmux status bar
set -g status-interval 60
set -g status-right '#({STATUS_COMMAND} 2>/dev/null) %H:%M'
"""

CRON_SNIPPET = "# refresh the todo cache every minute\n* * * * * todo update >/dev/null 2>&1\n"


def _enabled(flag: bool) -> str:
    return ansi.green("enabled") if flag else ansi.dim("disabled")


def crontab_lines(morning: str, evening: str) -> list[str]:
    lines = []
    for text, message in ((morning, MORNING_MESSAGE), (evening, EVENING_MESSAGE)):
        hour, minute = parse_time(text)
        lines.append(f'{minute} {hour} * * * notify-send "Todo" "{message}"')
    return lines


@cli("todo install", name="show", default=True)
def show() -> None:
    """List integrations and whether they are enabled"""
    cfg = Config()
    echo(ansi.bold("integrations:"))
    echo(f"  zsh            {ansi.dim('todo install zsh')}")
    echo(f"  tmux           {_enabled(cfg.get('tmux.enabled', True))}  {ansi.dim('todo install tmux')}")
    echo(f"  xbar           {_enabled(cfg.get('menubar.enabled', True))}  {ansi.dim('todo install xbar')}")
    echo(
        f"  notifications  {_enabled(cfg.get('notifications.enabled', False))}"
        f"  {ansi.dim('todo install notifications')}"
    )
    blocking = _enabled(cfg.get("terminal.blocking", False))
    echo(f"  terminal       {blocking}  {ansi.dim('set terminal.blocking: true in config.yaml')}")
    echo()
    echo(ansi.dim("keep the cache warm with a cron entry:"))
    echo(CRON_SNIPPET.rstrip())


@cli("todo install", name="zsh")
def zsh() -> None:
    """Print a zsh snippet that shows status in the prompt"""
    echo(ZSH_SNIPPET.rstrip())


@cli("todo install", name="tmux")
def tmux() -> None:
    """Print a tmux.conf snippet that shows status in the status bar"""
    echo(TMUX_SNIPPET.rstrip())


@cli("todo install", name="xbar")
def xbar() -> None:
    """Install the xbar/SwiftBar menu bar plugin"""
    cfg = Config()
    refresh = int(cfg.get("menubar.refresh_seconds", 60))
    path = write_xbar_plugin(refresh)
    if path is None:
        echo(ansi.red("no xbar plugin folder found, install xbar (or SwiftBar) first"), err=True)
        return
    echo(f"  plugin written to {path}")


@cli("todo install", name="notifications")
def notifications() -> None:
    """Schedule morning and evening focus reminders"""
    cfg = Config()
    morning = str(cfg.get("notifications.morning_time", "09:00"))
    evening = str(cfg.get("notifications.evening_time", "20:00"))

    if sys.platform == "darwin":
        for label, message, text in (
            (MORNING_LABEL, MORNING_MESSAGE, morning),
            (EVENING_LABEL, EVENING_MESSAGE, evening),
        ):
            hour, minute = parse_time(text)
            changed = install_agent(label, reminder_plist(label, message, hour, minute))
            echo(f"  {label} {'registered' if changed else 'up to date'}")
    else:
        echo(ansi.dim("add these lines with `crontab -e`:"))
        for line in crontab_lines(morning, evening):
            echo(line)

    if not cfg.get("notifications.enabled", False):
        cfg.set("notifications.enabled", True)
