import logging
from pathlib import Path
from typing import Optional

from timedwall.config import ConfigManager
from timedwall.engine import WallpaperEngine
from timedwall.schedule import ScheduleManager
from timedwall.scheduler import Daemon
from timedwall.writer import WallpaperWriter


def build_daemon(config_manager: ConfigManager, timeline_path: Optional[Path] = None) -> Daemon:
    """Load the timeline and wire the daemon to the configured engine"""
    logger = logging.getLogger("timedwall")

    timeline_path = timeline_path or config_manager.get_timeline_path()
    if not timeline_path:
        raise FileNotFoundError("No timeline given and none configured (set timeline.path)")

    logger.info(f"Loading timeline: {timeline_path}")
    timeline = ScheduleManager().load_timeline(timeline_path)
    timeline.loop_wait = config_manager.get_loop_wait()

    engine = WallpaperEngine(command=config_manager.get_engine_command())
    writer = WallpaperWriter(timeline, engine.set_wallpaper, config_manager.get_temp_image())
    return Daemon(timeline, writer)


def main():
    # Setup logging
    log_dir = ConfigManager.get_logs_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_dir / "timedwall.log",
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger("timedwall")

    try:
        daemon = build_daemon(ConfigManager())
        daemon.install_signal_handlers()
        daemon.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    except Exception as e:
        logger.error(f"Error running timed wallpaper: {str(e)}", exc_info=True)
        raise SystemExit(1)


if __name__ == '__main__':
    main()
