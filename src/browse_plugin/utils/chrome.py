"""Local Chrome discovery, profile preparation and process lifecycle.

Local mode runs a real Chrome with remote debugging on a fixed port and
attaches to it over CDP. Chrome outlives individual connections; its PID is
recorded in a small JSON file so it can be stopped later.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import shutil
import signal
import subprocess
import time
from pathlib import Path

import requests

from browse_plugin.utils.exceptions import ChromeLaunchError

logger = logging.getLogger(__name__)

DEFAULT_CDP_PORT = 9222
POLL_INTERVAL = 0.3  # seconds


def _chrome_candidates() -> list[str]:
    system = platform.system()
    home = os.environ.get("HOME", "")
    if system == "Darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            f"{home}/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            f"{home}/Applications/Chromium.app/Contents/MacOS/Chromium",
        ]
    if system == "Windows":
        local_app_data = os.environ.get("LOCALAPPDATA", "")
        program_files = os.environ.get("PROGRAMFILES", "")
        program_files_x86 = os.environ.get("PROGRAMFILES(X86)", "")
        return [
            r"C:\Program Files\Google\Chrome\Application\chrome.exe",
            r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
            rf"{local_app_data}\Google\Chrome\Application\chrome.exe",
            rf"{program_files}\Google\Chrome\Application\chrome.exe",
            rf"{program_files_x86}\Google\Chrome\Application\chrome.exe",
            r"C:\Program Files\Chromium\Application\chrome.exe",
            r"C:\Program Files (x86)\Chromium\Application\chrome.exe",
        ]
    return [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
        "/usr/local/bin/google-chrome",
        "/usr/local/bin/chromium",
        "/opt/google/chrome/chrome",
        "/opt/google/chrome/google-chrome",
    ]


def find_local_chrome() -> str | None:
    """Return the path of an installed Chrome or Chromium, if any."""
    for candidate in _chrome_candidates():
        if candidate and Path(candidate).exists():
            return candidate
    return None


def get_chrome_user_data_dir() -> Path:
    """Return the user's Chrome data directory for this OS."""
    system = platform.system()
    home = Path.home()
    if system == "Darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome"
    if system == "Windows":
        return Path(os.environ.get("LOCALAPPDATA", "")) / "Google" / "Chrome" / "User Data"
    return home / ".config" / "google-chrome"


def prepare_chrome_profile(plugin_root: Path) -> Path:
    """Create the plugin's Chrome profile, seeded from the user's profile.

    The user's ``Default`` profile is copied once so cookies and logins carry
    over. If the directory already exists nothing is copied.

    Args:
        plugin_root: Directory that holds ``.chrome-profile``.

    Returns:
        Path of the profile directory to pass as ``--user-data-dir``.
    """
    profile_dir = plugin_root / ".chrome-profile"
    if profile_dir.exists():
        return profile_dir

    profile_dir.mkdir(parents=True)
    source = get_chrome_user_data_dir() / "Default"
    if source.exists():
        try:
            shutil.copytree(source, profile_dir / "Default")
        except (OSError, shutil.Error) as e:
            # Locked or unreadable files: a fresh profile still works.
            logger.debug("Profile copy from %s failed: %s", source, e)
    return profile_dir


def is_chrome_running(port: int = DEFAULT_CDP_PORT) -> bool:
    """Check whether something answers the CDP version endpoint."""
    try:
        response = requests.get(f"http://127.0.0.1:{port}/json/version", timeout=1)
    except requests.RequestException:
        return False
    return response.ok


def get_ws_url(port: int = DEFAULT_CDP_PORT) -> str:
    """Return the browser-level WebSocket debugger URL."""
    response = requests.get(f"http://127.0.0.1:{port}/json/version", timeout=5)
    response.raise_for_status()
    return response.json()["webSocketDebuggerUrl"]


def launch_local_chrome(
    chrome_path: str,
    profile_dir: Path,
    pid_file: Path,
    port: int = DEFAULT_CDP_PORT,
    timeout: int = 15000,
) -> subprocess.Popen:
    """Start Chrome with remote debugging and wait until it answers.

    Args:
        chrome_path: Chrome executable.
        profile_dir: Value for ``--user-data-dir``.
        pid_file: Where to record the process id.
        port: Remote debugging port.
        timeout: How long to wait for the port, in milliseconds.

    Returns:
        The Chrome process handle.

    Raises:
        ChromeLaunchError: If Chrome does not answer within the timeout.
    """
    process = subprocess.Popen(
        [
            chrome_path,
            f"--remote-debugging-port={port}",
            f"--user-data-dir={profile_dir}",
            "--window-size=1280,720",
            "--disable-blink-features=AutomationControlled",
        ],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    pid_file.write_text(
        json.dumps({"pid": process.pid, "startTime": int(time.time() * 1000)})
    )

    attempts = max(1, int(timeout / 1000 / POLL_INTERVAL))
    for _ in range(attempts):
        if is_chrome_running(port):
            logger.info("Launched local Chrome on port %d", port)
            return process
        time.sleep(POLL_INTERVAL)

    raise ChromeLaunchError(f"Chrome failed to start within {timeout // 1000} seconds")


def is_chrome_process(pid: int) -> bool:
    """Check that a PID belongs to Chrome before signalling it."""
    try:
        if platform.system() == "Windows":
            result = subprocess.run(
                ["tasklist", "/FI", f"PID eq {pid}", "/FO", "CSV", "/NH"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            return "chrome" in result.stdout.lower()
        result = subprocess.run(
            ["ps", "-p", str(pid), "-o", "comm="],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    name = result.stdout.strip().lower()
    return "chrome" in name or "chromium" in name


def kill_recorded_chrome(pid_file: Path, force: bool = True) -> bool:
    """Stop the Chrome recorded in the PID file and remove the file.

    Args:
        pid_file: The ``.chrome-pid`` file written by launch_local_chrome.
        force: Kill the process if it still looks like Chrome.

    Returns:
        True if a process was signalled.
    """
    killed = False
    try:
        if force and pid_file.exists():
            pid = int(json.loads(pid_file.read_text())["pid"])
            if is_chrome_process(pid):
                if platform.system() == "Windows":
                    subprocess.run(["taskkill", "/PID", str(pid), "/F"], timeout=5)
                else:
                    os.kill(pid, signal.SIGKILL)
                killed = True
    except (OSError, ValueError, KeyError, subprocess.SubprocessError) as e:
        logger.debug("Could not stop recorded Chrome: %s", e)
    finally:
        try:
            pid_file.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove %s: %s", pid_file, e)
    return killed
