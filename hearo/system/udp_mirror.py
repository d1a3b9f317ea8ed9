"""Mirror dispatched alerts to a companion display as JSON datagrams."""
from __future__ import annotations

import json
import logging
import socket
from typing import Optional

from hearo.system.models import Alert

LOGGER = logging.getLogger(__name__)


def resolve_host(host: str) -> str:
    try:
        return socket.gethostbyname(host)
    except OSError as exc:
        LOGGER.warning("Could not resolve %s: %s", host, exc)
        return host


class UdpAlertMirror:
    def __init__(self, host: str, port: int, sock: Optional[socket.socket] = None) -> None:
        self.host = host
        self.port = port
        self._address: Optional[str] = None
        self._sock = sock or socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def _target(self, refresh: bool = False) -> tuple[str, int]:
        if self._address is None or refresh:
            self._address = resolve_host(self.host)
        return self._address, self.port

    @staticmethod
    def encode(alert: Alert) -> bytes:
        return json.dumps({"type": "alert", **alert.to_dict()}).encode("utf-8")

    def publish(self, alert: Alert) -> None:
        payload = self.encode(alert)
        try:
            self._sock.sendto(payload, self._target())
        except OSError as exc:
            LOGGER.debug("UDP send failed (%s), re-resolving %s", exc, self.host)
            try:
                self._sock.sendto(payload, self._target(refresh=True))
            except OSError as retry_exc:
                LOGGER.warning("UDP send of alert #%d failed: %s", alert.id, retry_exc)

    def close(self) -> None:
        self._sock.close()

    def __repr__(self) -> str:
        return f"UdpAlertMirror({self.host}:{self.port})"
