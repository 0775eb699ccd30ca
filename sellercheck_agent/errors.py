from __future__ import annotations


class SellerCheckError(Exception):
    pass


class NavigationError(SellerCheckError):
    def __init__(self, url: str, reason: str | None = None):
        self.url = url
        self.reason = reason
        message = f"Failed to load {url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SellerUnavailableError(SellerCheckError):
    """The seller's storefront page could not be loaded, so nothing can be assessed."""

    def __init__(self, username: str, url: str):
        self.username = username
        self.url = url
        super().__init__(f"Seller {username!r} could not be loaded from {url}")


class ParseError(SellerCheckError, ValueError):
    """Upstream text was present but did not have the expected shape.

    Kept distinct from a missing element: a missing element defaults to 0,
    malformed text aborts the assessment.
    """

    def __init__(self, kind: str, text: str | None):
        self.kind = kind
        self.text = text
        super().__init__(f"Could not parse {kind} from {text!r}")
