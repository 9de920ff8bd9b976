import sys
import signal
import logging
import argparse
from PySide6.QtCore import QCoreApplication, QObject, QTimer, Slot
from ecgmonitor.model import StreamController
from ecgmonitor.sensor import SensorClient
from ecgmonitor.mock import MockSensorClient
from ecgmonitor.utils import valid_host, valid_port
from ecgmonitor.config import DEFAULT_HOST, DEFAULT_PORT, SAMPLE_INTERVAL_MS


logger = logging.getLogger(__name__)


class ConsolePresenter(QObject):
    """Report what the controller publishes, in place of a GUI."""

    def __init__(self, model: StreamController):
        super().__init__()
        self.model = model
        self.model.status_update.connect(self.show_connection_status)
        self.model.state_update.connect(self.show_state)
        self.model.metrics_update.connect(self.show_metrics)
        self.model.warning_update.connect(self.show_status)

    @Slot(object)
    def show_connection_status(self, status):
        logger.info(f"Status: {status.value}")

    @Slot(object)
    def show_state(self, state):
        logger.info(f"Stream: {state.value}")

    @Slot(object)
    def show_metrics(self, metrics):
        snapshot = metrics.value
        print(
            f"HR {snapshot.heart_rate:>3} BPM | amplitude {snapshot.amplitude:>4} |"
            f" quality {snapshot.quality.value}"
        )

    @Slot(str)
    def show_status(self, status):
        logger.info(status)


class Application(QCoreApplication):
    def __init__(self, sys_argv, args: argparse.Namespace):
        super().__init__(sys_argv)
        self._model = StreamController(sample_interval_ms=args.sample_interval)
        if args.mock:
            self._sensor = MockSensorClient(args.sample_interval)
        else:
            self._sensor = SensorClient()
        self._sensor.event_update.connect(self._model.handle_event)
        self._sensor.status_update.connect(logger.info)
        self._model.close_requested.connect(self._sensor.disconnect_client)
        self._presenter = ConsolePresenter(self._model)
        self.aboutToQuit.connect(self._sensor.disconnect_client)
        self._host = args.host
        self._port = args.port

    def start(self):
        self._sensor.connect_client(self._host, self._port)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ecgmonitor",
        description="Smooth a live ECG stream and estimate heart rate.",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="device address")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="device port")
    parser.add_argument(
        "--sample-interval",
        type=float,
        default=SAMPLE_INTERVAL_MS,
        help="milliseconds between two samples sent by the device",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument(
        "--mock", action="store_true", help="use a simulated device"
    )
    args = parser.parse_args(argv)
    if not valid_host(args.host):
        parser.error(f"invalid host: {args.host}")
    if not valid_port(args.port):
        parser.error(f"invalid port: {args.port}")
    if args.sample_interval <= 0:
        parser.error("sample interval must be positive")

    return args


def main():
    args = parse_args()
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app = Application(sys.argv, args)
    signal.signal(signal.SIGINT, signal.SIG_DFL)  # let Ctrl+C end the event loop
    QTimer.singleShot(0, app.start)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
