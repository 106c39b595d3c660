"""
Duplicate Detection API Routes

Library-wide duplicate scan and the save-time duplicate check. The caller
supplies the catalog snapshot; nothing is stored or modified here.
"""

import asyncio

from fastapi import APIRouter, Depends

from shelfscan.api.dependencies import get_duplicate_detector
from shelfscan.api.middleware import ValidationError
from shelfscan.api.schemas import (
    CatalogEntrySchema,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    DuplicateGroupSchema,
    DuplicateResolveRequest,
    DuplicateResolveResponse,
    DuplicateScanRequest,
    DuplicateScanResponse,
)
from shelfscan.library.duplicates import CatalogEntry, DuplicateDetector, DuplicateGroup


router = APIRouter(prefix="/duplicates", tags=["duplicates"])


@router.post("", response_model=DuplicateScanResponse)
async def scan_duplicates(
    request: DuplicateScanRequest,
    detector: DuplicateDetector = Depends(get_duplicate_detector),
) -> DuplicateScanResponse:
    """Group the supplied catalog into likely duplicates."""
    entries = [e.to_entry() for e in request.entries]

    # Pairwise comparison is CPU-bound; keep it off the event loop
    groups = await asyncio.to_thread(detector.find_duplicates, entries)

    return DuplicateScanResponse(
        groups=[
            DuplicateGroupSchema(
                ids=group.ids,
                entries=[CatalogEntrySchema.from_entry(e) for e in group.entries],
            )
            for group in groups
        ],
        total_entries=len(entries),
        duplicate_entries=sum(len(group) for group in groups),
    )


@router.post("/check", response_model=DuplicateCheckResponse)
def check_duplicate(
    request: DuplicateCheckRequest,
    detector: DuplicateDetector = Depends(get_duplicate_detector),
) -> DuplicateCheckResponse:
    """Save-time check of one entry against the catalog."""
    matches = detector.find_matches(
        request.entry.to_entry(),
        [e.to_entry() for e in request.entries],
    )
    return DuplicateCheckResponse(
        is_duplicate=bool(matches),
        matches=[CatalogEntrySchema.from_entry(m) for m in matches],
    )


@router.post("/resolve", response_model=DuplicateResolveResponse)
def resolve_duplicates(request: DuplicateResolveRequest) -> DuplicateResolveResponse:
    """Keep-one / delete-rest plan for a group; deletion itself is up to the caller."""
    group = DuplicateGroup(entries=[CatalogEntry(id=entry_id, title="") for entry_id in request.group_ids])

    try:
        remove_ids = group.ids_to_remove(request.keep_id)
    except ValueError as e:
        raise ValidationError("Invalid keep_id", detail=str(e))

    return DuplicateResolveResponse(keep_id=request.keep_id, remove_ids=remove_ids)
