"""
Switcheroo - Main entry point and daemon.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config import Configuration, get_config_path, load_config, parse_bool
from .errors import SwitcherooError
from .hid_monitor import HIDMonitor, enumerate_keyboards
from .overrides import Overrides
from .settings import GnomeInputSources, GnomeNaturalScroll
from .state import EventProcessor, StartupSnapshot

log = logging.getLogger(__name__)


class Switcheroo:
    """Main application controller."""

    def __init__(
        self,
        configuration: Configuration,
        input_sources: Optional[GnomeInputSources] = None,
        natural_scroll: Optional[GnomeNaturalScroll] = None,
        monitor_factory: Callable[..., HIDMonitor] = HIDMonitor,
    ):
        self.input_sources = input_sources or GnomeInputSources()
        self.natural_scroll = natural_scroll or GnomeNaturalScroll()

        available = self.input_sources.list_available()
        snapshot = StartupSnapshot(
            input_source=self.input_sources.get_active(),
            natural_scroll=self.natural_scroll.get(),
        )
        log.info(f"Defaults: input_source={snapshot.input_source}, natural_scroll={snapshot.natural_scroll}")
        configuration.validate(available)

        self.processor = EventProcessor(
            Overrides(configuration), snapshot, self.input_sources, self.natural_scroll
        )
        self.monitor = monitor_factory(
            on_add=self.processor.queue_add_device,
            on_remove=self.processor.queue_remove_device,
        )

    def _install_signal_handlers(self):
        def signal_handler(signum, frame):
            log.info(f"Received signal {signum}, shutting down...")
            self.processor.queue_shutdown()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self) -> int:
        """Process device events until a shutdown signal arrives; returns the exit status."""
        # Initial enumeration runs here so an unavailable device catalog is fatal
        self.monitor.poll()

        self._install_signal_handlers()
        self.processor.start()
        self.monitor.start()
        print("Entering main loop.")

        try:
            status = None
            while status is None:
                # Short waits keep the main thread responsive to signals
                status = self.processor.wait(timeout=1.0)
        finally:
            self.monitor.stop()

        log.info("Switcheroo stopped")
        return status


def cmd_run(args) -> int:
    config_path = args.config or get_config_path()
    print(f"Using configuration file: {config_path}")
    configuration = load_config(config_path)
    print("Successfully decoded configuration file.")
    return Switcheroo(configuration).run()


def cmd_list_devices(args) -> int:
    for device in sorted(enumerate_keyboards()):
        print(device)
    return 0


def cmd_list_input_sources(args) -> int:
    for input_source in GnomeInputSources().list_available():
        print(input_source)
    return 0


def cmd_get_input_source(args) -> int:
    print(GnomeInputSources().get_active())
    return 0


def cmd_set_input_source(args) -> int:
    GnomeInputSources().set_active(args.desired)
    return 0


def cmd_get_natural_scroll(args) -> int:
    print('true' if GnomeNaturalScroll().get() else 'false')
    return 0


def cmd_set_natural_scroll(args) -> int:
    GnomeNaturalScroll().set(parse_bool(args.desired))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='switcheroo',
        description='Switch keyboard layout and scroll direction when specific keyboards connect.',
    )
    parser.add_argument('--config', type=Path, default=None,
                        help=f'Configuration file (default: {get_config_path()})')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.set_defaults(func=cmd_run)

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    subparsers.add_parser('run', help='Run the daemon (default)').set_defaults(func=cmd_run)
    subparsers.add_parser('list-devices', help='List connected keyboards').set_defaults(func=cmd_list_devices)
    subparsers.add_parser('list-input-sources', help='List available input sources').set_defaults(
        func=cmd_list_input_sources)
    subparsers.add_parser('get-input-source', help='Print the active input source').set_defaults(
        func=cmd_get_input_source)

    set_input_source = subparsers.add_parser('set-input-source', help='Activate an input source')
    set_input_source.add_argument('desired', help='The desired input source.')
    set_input_source.set_defaults(func=cmd_set_input_source)

    subparsers.add_parser('get-natural-scroll', help='Print the natural scroll setting').set_defaults(
        func=cmd_get_natural_scroll)

    set_natural_scroll = subparsers.add_parser('set-natural-scroll', help='Change the natural scroll setting')
    set_natural_scroll.add_argument('desired', help='The desired setting for natural scroll (`false` or `true`).')
    set_natural_scroll.set_defaults(func=cmd_set_natural_scroll)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        return args.func(args)
    except SwitcherooError as e:
        log.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
