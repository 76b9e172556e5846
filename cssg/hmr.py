"""Live-reload wire protocol and browser client for cssg.

The server pushes one of two messages over the ``/_ws`` WebSocket:

- ``reload``: the literal token asking the page to reload itself.
- ``{"type": "css-update", "path": "/assets/css/style.css"}``: refresh only
  the stylesheet whose ``href`` starts with ``path``.

CLIENT_SCRIPT is injected into every HTML page served in development mode.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Union

LIVE_RELOAD_PATH = "/_ws"
RELOAD_TOKEN = "reload"
STYLE_UPDATE_TYPE = "css-update"
MAX_RETRIES = 5


@dataclass(frozen=True)
class FullReload:
    """Ask every client to reload the whole page."""

    def encode(self) -> str:
        return RELOAD_TOKEN


@dataclass(frozen=True)
class StyleUpdate:
    """Ask every client to refresh a single stylesheet.

    Attributes:
        path: URL path of the stylesheet, as used in ``<link href>``.
    """

    path: str

    def encode(self) -> str:
        return json.dumps({"type": STYLE_UPDATE_TYPE, "path": self.path})


NotificationMessage = Union[FullReload, StyleUpdate]


CLIENT_SCRIPT = """
<script>
(() => {
  const maxRetries = %(max_retries)d;
  let retryCount = 0;

  function swapStylesheet(path) {
    const link = document.querySelector(`link[rel="stylesheet"][href^="${path}"]`);
    if (!link) {
      location.reload();
      return;
    }
    link.href = path + "?t=" + Date.now();
  }

  function connect() {
    const ws = new WebSocket("ws://" + location.host + "%(endpoint)s");
    ws.onopen = () => {
      retryCount = 0;
      console.log("[cssg] live reload connected");
    };
    ws.onmessage = (event) => {
      if (event.data === "%(reload)s") {
        location.reload();
        return;
      }
      try {
        const message = JSON.parse(event.data);
        if (message.type === "%(style_update)s" && message.path) {
          swapStylesheet(message.path);
        }
      } catch (err) {
        console.error("[cssg] bad live reload message", err);
      }
    };
    ws.onclose = () => {
      if (retryCount < maxRetries) {
        retryCount++;
        setTimeout(connect, Math.min(1000 * retryCount, 5000));
      }
    };
  }

  connect();
})();
</script>
""" % {
    "max_retries": MAX_RETRIES,
    "endpoint": LIVE_RELOAD_PATH,
    "reload": RELOAD_TOKEN,
    "style_update": STYLE_UPDATE_TYPE,
}
