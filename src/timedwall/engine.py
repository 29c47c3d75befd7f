# engine.py
import os
import sys
import shlex
import logging
import subprocess
from pathlib import Path
from typing import Literal, Optional

from timedwall.errors import ResourceError


class WallpaperEngine:
    def __init__(self, command: Optional[str] = None):
        self.platform: Literal["win32", "darwin", "linux"] = sys.platform
        self.command = command or None
        self.logger = logging.getLogger("timedwall.engine")

    def __call__(self, image_path: Path) -> None:
        self.set_wallpaper(image_path)

    def set_wallpaper(self, image_path: Path) -> None:
        """Sets the desktop wallpaper, raising ResourceError on failure"""
        image_path = Path(image_path).expanduser().resolve()
        if not image_path.exists():
            raise ResourceError(f"Image not found: {image_path}")

        if self.command:
            self._run_command(image_path)
        elif self.platform == "win32":
            self._set_windows_wallpaper(image_path)
        elif self.platform == "darwin":
            self._set_macos_wallpaper(image_path)
        elif self.platform.startswith("linux"):
            self._set_linux_wallpaper(image_path)
        else:
            raise ResourceError(f"Unsupported platform: {self.platform}")

        self.logger.debug(f"Wallpaper set to {image_path}")

    def _run(self, args: list) -> None:
        try:
            subprocess.run(args, check=True, capture_output=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise ResourceError(f"Command {args[0]} failed: {e}")

    def _run_command(self, path: Path) -> None:
        """Runs the user supplied setter command, e.g. "swaybg -i {path}" """
        args = [part.replace("{path}", str(path)) for part in shlex.split(self.command)]
        self._run(args)

    def _set_windows_wallpaper(self, path: Path) -> None:
        import ctypes
        SPI_SETDESKWALLPAPER = 20
        if not ctypes.windll.user32.SystemParametersInfoW(SPI_SETDESKWALLPAPER, 0, str(path), 3):
            raise ResourceError("Windows API error: SystemParametersInfoW failed")

    def _set_macos_wallpaper(self, path: Path) -> None:
        script = f'''
        tell application "System Events"
            set desktopCount to count of desktops
            repeat with desktopNumber from 1 to desktopCount
                tell desktop desktopNumber
                    set picture to "{path}"
                end tell
            end repeat
        end tell
        '''
        self._run(["osascript", "-e", script])

    def _set_linux_wallpaper(self, path: Path) -> None:
        """Handles GNOME, KDE, and generic X11"""
        if self._check_desktop("GNOME"):
            self._run([
                "gsettings", "set",
                "org.gnome.desktop.background",
                "picture-uri", f"file://{path}"
            ])
            # Only present on GNOME 42 and later
            try:
                self._run([
                    "gsettings", "set",
                    "org.gnome.desktop.background",
                    "picture-uri-dark", f"file://{path}"
                ])
            except ResourceError as e:
                self.logger.debug(f"Could not set the dark wallpaper: {e}")
            return

        if self._check_desktop("KDE"):
            self._run([
                "dbus-send", "--session", "--dest=org.kde.plasmashell",
                "--type=method_call", "/PlasmaShell",
                "org.kde.PlasmaShell.evaluateScript",
                f"string:var allDesktops = desktops(); for (i=0;i<allDesktops.length;i++) {{ \
                d = allDesktops[i]; d.wallpaperPlugin = 'org.kde.image'; \
                d.currentConfigGroup = Array('Wallpaper', 'org.kde.image', 'General'); \
                d.writeConfig('Image', 'file://{path}')}}"
            ])
            return

        # Fallback to feh for minimal setups
        self._run(["feh", "--bg-fill", str(path)])

    def _check_desktop(self, name: str) -> bool:
        return name in os.environ.get("XDG_CURRENT_DESKTOP", "").upper()
