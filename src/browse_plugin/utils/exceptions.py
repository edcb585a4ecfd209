"""Exception hierarchy for the browse plugin."""


class BrowsePluginError(Exception):
    """Base exception for all browse plugin errors."""


class TransientError(BrowsePluginError):
    """Errors that may clear up after the page or browser settles."""


class PermanentError(BrowsePluginError):
    """Errors that require configuration changes or a new snapshot."""


class ConfigurationError(PermanentError):
    """Invalid or missing configuration."""


class ServiceError(PermanentError):
    """Errors reported by a third-party service."""


class BrowserbaseSessionError(ServiceError):
    """Browserbase refused to create a cloud browser session."""

    def __init__(self, status: int, body: str) -> None:
        """Initialize BrowserbaseSessionError with the HTTP response.

        Args:
            status: HTTP status code returned by the sessions endpoint.
            body: Raw response body, included verbatim in the message.
        """
        self.status = status
        self.body = body
        super().__init__(f"Browserbase session creation failed ({status}): {body}")


class RefNotFound(PermanentError):  # noqa: N818
    """A ref token is not present in the current snapshot's ref table.

    Either the token was never issued or it belongs to a snapshot that has
    since been replaced. The caller has to take a new snapshot.
    """

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(
            f'Unknown ref "{ref}". Run browser_snapshot first to get current refs.'
        )


class ElementNotFound(TransientError):  # noqa: N818
    """A known ref matched no live element on the current page."""

    def __init__(self, ref: str, role: str, name: str, detail: str = "") -> None:
        """Initialize ElementNotFound with the failed lookup.

        Args:
            ref: The ref as supplied by the caller.
            role: Accessibility role stored for the ref.
            name: Accessible name stored for the ref.
            detail: Optional extra explanation appended to the message.
        """
        self.ref = ref
        self.role = role
        self.name = name
        message = f'No element found for ref {ref} (role={role}, name="{name}")'
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class NavigationError(TransientError):
    """Page navigation failed."""


class ChromeLaunchError(TransientError):
    """A local Chrome process did not come up on the debugging port."""


class CDPConnectionError(PermanentError):
    """Cannot connect to Chrome via CDP (Chrome DevTools Protocol).

    This error occurs when Playwright cannot attach to the browser's
    debugging endpoint, local or remote.
    """

    def __init__(self, url: str) -> None:
        """Initialize CDPConnectionError with the target URL.

        Args:
            url: The CDP URL that could not be connected to.
        """
        self.url = url
        super().__init__(
            f"Cannot connect to Chrome at {url}. "
            "Is Chrome running with --remote-debugging-port?"
        )
