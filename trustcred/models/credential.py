from __future__ import annotations

import json
from dataclasses import asdict, dataclass


@dataclass(frozen=True, slots=True)
class Credential:
    """Credential record as stored by the digital-credentials contract.

    Timestamps are epoch milliseconds.  `valid` is computed when the
    record is read off the ledger; expiry is re-checked at verification
    time because cached records outlive that moment.
    """

    credential_id: str
    issuer: str
    recipient: str
    schema_id: str
    issued_at: int
    expires_at: int | None
    revoked: bool
    revoked_at: int | None
    data_hash: str
    metadata_uri: str
    valid: bool

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)

    @staticmethod
    def from_json(raw: str) -> Credential:
        return Credential(**json.loads(raw))
