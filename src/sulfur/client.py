"""Client for a single WebDriver session."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .errors import (
    MalformedResponse,
    NoActiveSession,
    ProtocolError,
    SessionCreationFailed,
    SulfurError,
)
from .protocol import codec
from .protocol.models import By, Capabilities, Element, Timeouts

LOGGER = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 60.0


class Client:
    """An open WebDriver session on a remote end.

    Every command addresses ``<url>/session/<id>/...``. Once :meth:`close` has
    run the session id is gone for good and further commands raise
    :class:`~sulfur.errors.NoActiveSession` without touching the network.
    """

    def __init__(
        self,
        url: str,
        session_id: str,
        http: httpx.Client,
        *,
        owns_http: bool = False,
    ) -> None:
        self._url = url
        self._session_id: Optional[str] = session_id
        self._http = http
        self._owns_http = owns_http

    # Lifecycle ---------------------------------------------------------------

    @classmethod
    def open(
        cls,
        url: str,
        capabilities: Optional[Capabilities] = None,
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> "Client":
        """Create a new session on the remote end at ``url``."""

        capabilities = capabilities or Capabilities()
        owns_http = http is None
        if http is None:
            http = httpx.Client(timeout=timeout)
        try:
            response = codec.send(http, "POST", url, ["session"], capabilities.to_request())
            try:
                envelope = codec.decode_envelope(response)
            except ProtocolError as exc:
                raise SessionCreationFailed(exc) from exc
            session_id = _extract_session_id(envelope)
        except Exception:
            if owns_http:
                http.close()
            raise
        LOGGER.info("Opened session %s on %s", session_id, url)
        return cls(url, session_id, http, owns_http=owns_http)

    def close(self) -> None:
        """Delete the remote session. Calling it again does nothing.

        A failed DELETE is logged rather than raised; the session is
        considered closed either way.
        """

        session_id = self._session_id
        if session_id is None:
            return
        self._session_id = None
        LOGGER.debug("Closing session %s", session_id)
        try:
            codec.execute(self._http, "DELETE", self._url, ["session", session_id])
        except SulfurError as error:
            LOGGER.warning("Closing webdriver session %s failed: %s", session_id, error)
            return
        finally:
            if self._owns_http:
                self._http.close()
        LOGGER.info("Closed session %s", session_id)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._session_id is not None

    # Navigation --------------------------------------------------------------

    def visit(self, url: str) -> None:
        self._execute("POST", "url", body={"url": url})

    def back(self) -> None:
        self._execute("POST", "back")

    def forward(self) -> None:
        self._execute("POST", "forward")

    def refresh(self) -> None:
        self._execute("POST", "refresh")

    def current_url(self) -> str:
        return self._execute("GET", "url", target=str)

    def title(self) -> str:
        return self._execute("GET", "title", target=str)

    # Timeouts ----------------------------------------------------------------

    def timeouts(self) -> Timeouts:
        return self._execute("GET", "timeouts", target=Timeouts)

    def set_timeouts(self, timeouts: Timeouts) -> None:
        self._execute("POST", "timeouts", body=timeouts.to_json())

    # Windows -----------------------------------------------------------------

    def window(self) -> str:
        """Return the handle of the current top-level browsing context."""

        return self._execute("GET", "window", target=str)

    def windows(self) -> list[str]:
        return self._execute("GET", "window", "handles", target=list[str])

    def switch_to_window(self, handle: str) -> None:
        # "name" is what pre-W3C drivers read.
        self._execute("POST", "window", body={"handle": handle, "name": handle})

    def close_window(self) -> list[str]:
        """Close the current window and return the handles that remain."""

        return self._execute("DELETE", "window", target=list[str])

    # Frames ------------------------------------------------------------------

    def switch_to_frame(self, frame: Optional[Element]) -> None:
        """Switch to the frame ``frame`` or, given ``None``, to the top-level document."""

        frame_id = frame.to_json() if frame is not None else None
        self._execute("POST", "frame", body={"id": frame_id})

    def switch_to_parent_frame(self) -> None:
        self._execute("POST", "frame", "parent")

    # Element lookup ----------------------------------------------------------

    def find_element(self, by: By) -> Element:
        return self._execute("POST", "element", body=by.model_dump(), target=Element)

    def find_elements(self, by: By) -> list[Element]:
        return self._execute("POST", "elements", body=by.model_dump(), target=list[Element])

    def find_element_from(self, element: Element, by: By) -> Element:
        return self._execute(
            "POST", "element", element.id, "element", body=by.model_dump(), target=Element
        )

    def find_elements_from(self, element: Element, by: By) -> list[Element]:
        return self._execute(
            "POST",
            "element",
            element.id,
            "elements",
            body=by.model_dump(),
            target=list[Element],
        )

    # Element state and interaction -------------------------------------------

    def text(self, element: Element) -> str:
        return self._execute("GET", "element", element.id, "text", target=str)

    def name(self, element: Element) -> str:
        """Return the tag name of ``element``."""

        return self._execute("GET", "element", element.id, "name", target=str)

    def attribute(self, element: Element, name: str) -> Optional[str]:
        return self._execute(
            "GET", "element", element.id, "attribute", name, target=Optional[str]
        )

    def click(self, element: Element) -> None:
        self._execute("POST", "element", element.id, "click")

    def send_keys(self, element: Element, keys: str) -> None:
        self._execute(
            "POST",
            "element",
            element.id,
            "value",
            body={"text": keys, "value": [keys]},
        )

    def clear(self, element: Element) -> None:
        self._execute("POST", "element", element.id, "clear")

    # Document capture --------------------------------------------------------

    def page_source(self) -> str:
        return self._execute("GET", "source", target=str)

    def screenshot(self) -> bytes:
        """Return a PNG screenshot of the current page."""

        data = self._execute("GET", "screenshot", target=str)
        return codec.decode_base64(data)

    def element_screenshot(self, element: Element) -> bytes:
        data = self._execute("GET", "element", element.id, "screenshot", target=str)
        return codec.decode_base64(data)

    # Internal helpers --------------------------------------------------------

    def _session(self) -> str:
        if self._session_id is None:
            raise NoActiveSession()
        return self._session_id

    def _execute(
        self,
        method: str,
        *segments: str,
        target: Any = None,
        body: Optional[Any] = None,
    ) -> Any:
        path = ["session", self._session(), *segments]
        return codec.execute(self._http, method, self._url, path, target=target, body=body)

    def __repr__(self) -> str:
        return f"Client(url={self._url!r}, session_id={self._session_id!r})"


def _extract_session_id(envelope: dict[str, Any]) -> str:
    session_id = envelope.get("sessionId")
    if isinstance(session_id, str):
        return session_id
    value = envelope.get("value")
    if isinstance(value, dict) and isinstance(value.get("sessionId"), str):
        return value["sessionId"]
    raise MalformedResponse(f"New session response carries no session id: {envelope!r}")
