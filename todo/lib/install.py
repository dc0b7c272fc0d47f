import subprocess
from pathlib import Path

from .log import log

__all__ = ["LAUNCHD_DIR", "XBAR_PLUGIN_DIR", "install_agent", "parse_time", "reminder_plist", "write_xbar_plugin"]

LAUNCHD_DIR = Path.home() / "Library" / "LaunchAgents"
XBAR_PLUGIN_DIR = Path.home() / "Library" / "Application Support" / "xbar" / "plugins"


def parse_time(text: str) -> tuple[int, int]:
    """'HH:MM' -> (hour, minute). Unparseable parts become 0."""
    parts = text.split(":")
    try:
        hour = int(parts[0])
    except (ValueError, IndexError):
        hour = 0
    try:
        minute = int(parts[1])
    except (ValueError, IndexError):
        minute = 0
    return hour, minute


def reminder_plist(label: str, message: str, hour: int, minute: int) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>Label</key>
    <string>{label}</string>
    <key>ProgramArguments</key>
    <array>
        <string>/usr/bin/osascript</string>
        <string>-e</string>
        <string>display notification "{message}" with title "Todo" sound name "default"</string>
    </array>
    <key>StartCalendarInterval</key>
    <dict>
        <key>Hour</key>
        <integer>{hour}</integer>
        <key>Minute</key>
        <integer>{minute}</integer>
    </dict>
</dict>
</plist>
"""


def install_agent(label: str, plist: str, launchd_dir: Path | None = None, load: bool = True) -> bool:
    """Write a launch agent and (re)load it. False when it was already installed unchanged."""
    directory = launchd_dir if launchd_dir else LAUNCHD_DIR
    path = directory / f"{label}.plist"

    current = path.read_text() if path.exists() else None
    if current == plist:
        return False

    directory.mkdir(parents=True, exist_ok=True)
    path.write_text(plist)
    log(f"wrote launch agent {path}")

    if load:
        subprocess.run(["launchctl", "unload", str(path)], capture_output=True)
        subprocess.run(["launchctl", "load", str(path)], capture_output=True)
    return True


def write_xbar_plugin(refresh_seconds: int, plugin_dir: Path | None = None) -> Path | None:
    """Install the menu bar plugin. None when no xbar/SwiftBar plugin folder exists."""
    directory = plugin_dir if plugin_dir else XBAR_PLUGIN_DIR
    if not directory.exists():
        return None
    path = directory / f"todo.{refresh_seconds}s.sh"
    path.write_text(
        "#!/bin/bash\n"
        "# Todo Focus Status for xbar/SwiftBar\n"
        f"# Refresh every {refresh_seconds} seconds\n"
        "\n"
        "todo --use-cache status --format xbar\n"
    )
    path.chmod(0o755)
    log(f"wrote xbar plugin {path}")
    return path
