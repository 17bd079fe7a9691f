import sys
import threading

from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QPushButton,
    QTextEdit, QLineEdit, QLabel, QMessageBox, QHBoxLayout
)
from PyQt5.QtCore import pyqtSignal, QObject

from config import HOST, PORT
from clientcli import Client, parse_target
from session import DuplexSession
from utils import decode_message, format_hex
from logging_util import setup_logger


class Communicator(QObject):
    """Qt signal bridge for thread-safe UI updates."""
    message_received = pyqtSignal(str)
    error_occurred = pyqtSignal(str)
    connection_finished = pyqtSignal()


class ChatClient(QMainWindow):
    """PyQt5 GUI dialer for the DH chat."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("DH Chat Client")
        self.setGeometry(100, 100, 700, 500)

        self.logger = setup_logger("gui")
        self.comm = Communicator()
        self.comm.message_received.connect(self._display_message)
        self.comm.error_occurred.connect(self._show_error)
        self.comm.connection_finished.connect(lambda: self.connect_button.setEnabled(True))

        self.session = None

        self._init_ui()

    def _init_ui(self):
        self.target_input = QLineEdit(f"{HOST}:{PORT}")

        self.chat_area = QTextEdit()
        self.chat_area.setReadOnly(True)

        self.message_input = QLineEdit()
        self.message_input.setPlaceholderText("Type your message...")
        self.message_input.returnPressed.connect(self._send_message)

        self.send_button = QPushButton("Send")
        self.connect_button = QPushButton("Connect")

        self.send_button.clicked.connect(self._send_message)
        self.connect_button.clicked.connect(self._start_connection)

        # Layouts
        top_bar = QHBoxLayout()
        top_bar.addWidget(QLabel("Peer:"))
        top_bar.addWidget(self.target_input)
        self.status_label = QLabel("Not connected")
        top_bar.addStretch()
        top_bar.addWidget(self.status_label)

        bottom_layout = QHBoxLayout()
        bottom_layout.addWidget(self.send_button)
        bottom_layout.addWidget(self.connect_button)

        layout = QVBoxLayout()
        layout.addLayout(top_bar)
        layout.addWidget(self.chat_area)
        layout.addWidget(self.message_input)
        layout.addLayout(bottom_layout)

        container = QWidget()
        container.setLayout(layout)
        self.setCentralWidget(container)

        self.setStyleSheet("""
            QMainWindow {
                background-color: #1e1e1e;
                color: #ffffff;
            }
            QTextEdit, QLineEdit {
                background-color: #2e2e2e;
                color: #ffffff;
                border: 1px solid #555;
                padding: 5px;
                font-family: monospace;
            }
            QLabel {
                font-size: 14px;
                color: #f8f8f2;
            }
            QPushButton {
                background-color: #1e1e1e;
                color: white;
                padding: 8px;
                border-radius: 5px;
                border: 1px solid #888;
            }
        """)

    def _start_connection(self):
        """Dial and handshake in a background thread."""
        if self.session is not None and not self.session.closed:
            return
        self.connect_button.setEnabled(False)
        threading.Thread(target=self._handle_connection, daemon=True).start()

    def _handle_connection(self):
        try:
            host, port = parse_target(self.target_input.text().strip())
            sock = Client(host, port, logger=self.logger).connect()
            self.comm.message_received.emit(f"[+] Connected to {host}:{port}")

            session = DuplexSession(sock, on_message=self._on_message, logger=self.logger)
            secret = session.handshake()
            self.session = session
            self.comm.message_received.emit(f"[+] Shared secret established ({secret:X})")

            session.start_receiving()
            session.wait_closed()
            if session.error is not None:
                self.comm.error_occurred.emit(f"[!] Connection error: {session.error}")
            else:
                self.comm.message_received.emit("[-] Connection closed.")
            session.close()
        except (OSError, ValueError) as e:
            self.comm.error_occurred.emit(f"[!] Connection error: {e}")
        finally:
            self.comm.connection_finished.emit()

    def _on_message(self, cipher: bytes, plain: bytes):
        """Receive-thread callback; hands text to the UI thread."""
        message = decode_message(plain)
        if message is None:
            self.comm.message_received.emit(format_hex("[Peer, undecodable]", plain))
        else:
            self.comm.message_received.emit(f"[Peer]: {message.strip()}")

    def _send_message(self):
        """Encrypt and send the input line."""
        message = self.message_input.text().strip()
        if not message or self.session is None or self.session.closed:
            return
        self.message_input.clear()
        try:
            self.session.send_line(message)
            self.chat_area.append(f"[You]: {message}")
        except OSError as e:
            self.comm.error_occurred.emit(f"[!] Error sending message: {e}")

    def _display_message(self, message: str):
        """Append message to chat area."""
        self.status_label.setText(
            "Secure" if self.session is not None and not self.session.closed else "Not connected"
        )
        self.chat_area.append(message)

    def _show_error(self, message: str):
        """Display error in message box and chat area."""
        QMessageBox.critical(self, "Error", message)
        self.chat_area.append(f"[ERROR]: {message}")

    def closeEvent(self, event):
        if self.session is not None:
            self.session.close()
        super().closeEvent(event)


def main() -> int:
    app = QApplication(sys.argv)
    client = ChatClient()
    client.show()
    return app.exec_()


if __name__ == '__main__':
    sys.exit(main())
