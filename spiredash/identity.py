"""Parse ``spire-server entry show`` output and match entries to workloads.

The listing is plain text, one block per registration entry::

    Found 2 entries
    Entry ID         : 0b9a0c3e-...
    SPIFFE ID        : spiffe://example.org/ns/production/sa/default
    Parent ID        : spiffe://example.org/spire/agent/k8s_psat/workload-cluster/...
    Revision         : 0
    X509-SVID TTL    : default
    JWT-SVID TTL     : default
    Selector         : k8s:ns:production
    Selector         : k8s:sa:default

Blocks start at each ``Entry ID`` line. Fields are pulled out by their
label; a field missing from a block is reported as ``None`` (or an empty
selector list) rather than an error.
"""

from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

ENTRY_MARKER = re.compile(r"^[ \t]*Entry ID[ \t]*:", re.MULTILINE)
ENTRY_ID_PATTERN = re.compile(r"^[ \t]*Entry ID[ \t]*:[ \t]*(\S+)", re.MULTILINE)
SPIFFE_ID_PATTERN = re.compile(r"^[ \t]*SPIFFE ID[ \t]*:[ \t]*(\S+)", re.MULTILINE)
PARENT_ID_PATTERN = re.compile(r"^[ \t]*Parent ID[ \t]*:[ \t]*(\S+)", re.MULTILINE)
TTL_PATTERN = re.compile(r"^[ \t]*(?:X509-SVID[ \t]+)?TTL[ \t]*:[ \t]*(\S[^\n]*?)[ \t]*$", re.MULTILINE)
SELECTOR_PATTERN = re.compile(r"^[ \t]*Selector[ \t]*:[ \t]*(\S[^\n]*?)[ \t]*$", re.MULTILINE)


class IdentityEntry(BaseModel):
    """Compact view of the registration entry bound to a workload."""

    model_config = ConfigDict(populate_by_name=True)

    spiffe_id: Optional[str] = Field(None, alias="spiffeId", description="SPIFFE ID of the entry")
    parent_id: Optional[str] = Field(None, alias="parentId", description="Parent (agent) SPIFFE ID")
    ttl: Optional[str] = Field(None, description="X509-SVID TTL as printed by the server")
    selectors: List[str] = Field(default_factory=list, description="Selectors in listing order")
    has_registration: bool = Field(True, alias="hasRegistration")
    entry_id: Optional[str] = Field(None, alias="entryId", description="Registration entry ID")


def namespace_selector(namespace: str) -> str:
    return f"k8s:ns:{namespace}"


def service_account_selector(service_account: str) -> str:
    return f"k8s:sa:{service_account}"


def split_entries(listing: str) -> List[str]:
    """Split a listing into per-entry blocks, dropping any preamble."""
    starts = [match.start() for match in ENTRY_MARKER.finditer(listing)]
    ends = starts[1:] + [len(listing)]
    return [listing[start:end] for start, end in zip(starts, ends)]


def _first(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    return match.group(1) if match else None


def parse_entry(block: str) -> IdentityEntry:
    return IdentityEntry(
        spiffe_id=_first(SPIFFE_ID_PATTERN, block),
        parent_id=_first(PARENT_ID_PATTERN, block),
        ttl=_first(TTL_PATTERN, block),
        selectors=SELECTOR_PATTERN.findall(block),
        has_registration=True,
        entry_id=_first(ENTRY_ID_PATTERN, block),
    )


def parse_entries(listing: str) -> List[IdentityEntry]:
    return [parse_entry(block) for block in split_entries(listing)]


def correlate(
    listing: Optional[str], namespace: str, service_account: str
) -> Optional[IdentityEntry]:
    """Return the first entry selecting both the namespace and the service account.

    Selectors are compared whole, so ``k8s:sa:default`` does not match an
    entry that only carries ``k8s:sa:default-reader``.
    """
    if not listing:
        return None

    ns_token = namespace_selector(namespace)
    sa_token = service_account_selector(service_account)
    for block in split_entries(listing):
        entry = parse_entry(block)
        if ns_token in entry.selectors and sa_token in entry.selectors:
            return entry
    return None
