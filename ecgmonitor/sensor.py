import logging
from typing import Union
from PySide6.QtCore import QObject, Signal, QUrl
from PySide6.QtNetwork import QAbstractSocket
from PySide6.QtWebSockets import QWebSocket
from ecgmonitor.events import Connecting, Opened, Closed, Errored, SampleReceived
from ecgmonitor.utils import ws_url


logger = logging.getLogger(__name__)


def parse_sample(message: str) -> int:
    """Decode one text frame into a raw sample.

    The device sends every ADC reading as its own frame holding a decimal
    integer, e.g. "537". A reading of "0" means that the electrodes are off.
    Raises ValueError if the frame isn't an integer.
    """
    return int(message.strip())


class SensorClient(QObject):
    """
    Connect to an ECG device that acts as a WebSocket server.

    Socket callbacks are translated into `ecgmonitor.events` and emitted on
    `event_update`, in the order they arrive.
    """

    event_update = Signal(object)
    status_update = Signal(str)

    def __init__(self):
        super().__init__()
        self.client: Union[None, QWebSocket] = None
        self.url: str = ""

    def connect_client(self, host: str, port: int):
        if self.client is not None:
            self.status_update.emit(
                f"Closing connection to {self.url} before reconnecting."
            )
            # The old socket is unhooked before it closes, so report the
            # close here to end the session that belongs to it.
            self._reset_connection()
            self.event_update.emit(Closed())
        self.url = ws_url(host, port)
        self.status_update.emit(f"Connecting to device at {self.url}.")
        self.event_update.emit(Connecting(self.url))
        self.client = QWebSocket()
        self.client.connected.connect(self._handle_connected)
        self.client.disconnected.connect(self._handle_disconnected)
        self.client.errorOccurred.connect(self._catch_error)
        self.client.textMessageReceived.connect(self._data_handler)
        self.client.open(QUrl(self.url))

    def disconnect_client(self):
        if self.client is None:
            return
        if self.client.state() == QAbstractSocket.SocketState.UnconnectedState:
            return
        self.status_update.emit(f"Disconnecting from device at {self.url}.")
        self.client.close()

    def _handle_connected(self):
        self.status_update.emit(f"Connected to device at {self.url}.")
        self.event_update.emit(Opened())

    def _handle_disconnected(self):
        self.status_update.emit(f"Disconnected from device at {self.url}.")
        self._reset_connection()
        self.event_update.emit(Closed())

    def _reset_connection(self):
        if self.client is None:
            return
        logger.debug(f"Discarding connection to {self.url}.")
        client, self.client = self.client, None
        for socket_signal in (
            client.connected,
            client.disconnected,
            client.errorOccurred,
            client.textMessageReceived,
        ):
            try:
                socket_signal.disconnect()
            except (RuntimeError, TypeError) as e:
                logger.warning(f"Couldn't unhook client signal: {e}")
        if client.state() != QAbstractSocket.SocketState.UnconnectedState:
            client.close()
        client.deleteLater()

    def _catch_error(self, error):
        message = self.client.errorString() if self.client is not None else str(error)
        self.status_update.emit(f"An error occurred: {message}. Disconnecting device.")
        self.event_update.emit(Errored(message))

    def _data_handler(self, message: str):
        try:
            raw = parse_sample(message)
        except ValueError:
            logger.warning(f"Dropping malformed frame: {message!r}")
            self.status_update.emit(f"Received malformed sample {message!r}.")
            return
        self.event_update.emit(SampleReceived(raw))
