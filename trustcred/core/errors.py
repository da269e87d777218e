"""Verification error taxonomy.

Each exception carries the HTTP status and the short error title the API
layer renders in the failure envelope.  The service layer raises these;
the exception handlers in trustcred/api/errors.py translate them.
"""

from __future__ import annotations


class TrustCredError(Exception):
    """Base class for errors the API knows how to render."""

    status_code = 500
    title = "Internal Server Error"
    public_message = "An unexpected error occurred"


class InvalidArgument(TrustCredError):
    """Malformed credential id, batch or QR payload."""

    status_code = 400
    title = "Validation Error"
    public_message = "The request is invalid"


class CredentialNotFound(TrustCredError):
    """The ledger has no record for the requested credential."""

    status_code = 404
    title = "Credential Not Found"
    public_message = "The specified credential does not exist"


class LedgerUnavailable(TrustCredError):
    """The read-only contract call failed.  Never retried."""

    status_code = 500
    title = "Verification Failed"
    public_message = "Unable to verify credential at this time"


class StoreDegraded(TrustCredError):
    """Cache or database failure during enrichment.

    Raised by repositories, always swallowed by the verification service:
    a degraded metadata store only costs the placeholder fields.
    """

    title = "Store Degraded"
