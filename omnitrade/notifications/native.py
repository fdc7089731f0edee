"""Native OS notification channel.

macOS:   osascript
Linux:   notify-send (libnotify)
Windows: PowerShell balloon tip

Exactly one variant applies on a given host; other platforms fail
explicitly.
"""

import shutil
import subprocess
import sys
from typing import Callable

from omnitrade.notifications.base import BaseChannel, NotificationError


def _applescript_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _powershell_quote(text: str) -> str:
    return text.replace("'", "''")


def macos_command(title: str, message: str) -> list[str]:
    script = (
        f'display notification "{_applescript_quote(message)}" '
        f'with title "{_applescript_quote(title)}" sound name "Default"'
    )
    return ["osascript", "-e", script]


def linux_command(title: str, message: str) -> list[str]:
    return [
        "notify-send",
        title,
        message,
        "--icon=dialog-information",
        "--expire-time=10000",
    ]


def windows_command(title: str, message: str) -> list[str]:
    script = "; ".join([
        "Add-Type -AssemblyName System.Windows.Forms",
        "$n = New-Object System.Windows.Forms.NotifyIcon",
        "$n.Icon = [System.Drawing.SystemIcons]::Information",
        f"$n.BalloonTipTitle = '{_powershell_quote(title)}'",
        f"$n.BalloonTipText = '{_powershell_quote(message)}'",
        "$n.Visible = $True",
        "$n.ShowBalloonTip(10000)",
        "Start-Sleep -Seconds 12",
        "$n.Dispose()",
    ])
    return ["powershell", "-NoProfile", "-Command", script]


# Platform tag -> command builder
PLATFORM_COMMANDS: dict[str, Callable[[str, str], list[str]]] = {
    "darwin": macos_command,
    "linux": linux_command,
    "win32": windows_command,
}


class NativeChannel(BaseChannel):
    """Desktop popup through the host OS's notification tool."""

    name = "native"

    def __init__(self, platform: str = sys.platform, timeout: float = 15.0):
        self.platform = platform
        self.timeout = timeout

    def _command(self, title: str, message: str) -> list[str]:
        builder = PLATFORM_COMMANDS.get(self.platform)
        if builder is None:
            raise NotificationError(
                f"Native notifications not supported on platform: {self.platform}"
            )
        return builder(title, message)

    def send(self, title: str, message: str) -> None:
        command = self._command(title, message)
        try:
            subprocess.run(
                command,
                check=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise NotificationError(f"Native notification failed: {command[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise NotificationError(
                f"Native notification failed: timed out after {self.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode(errors="replace").strip()
            raise NotificationError(
                f"Native notification failed: exit code {e.returncode} {stderr}".rstrip()
            ) from e

    def verify(self) -> str:
        """Return the path of the notification tool for this platform."""
        executable = self._command("", "")[0]
        location = shutil.which(executable)
        if location is None:
            raise NotificationError(f"{executable} is not installed")
        return location
