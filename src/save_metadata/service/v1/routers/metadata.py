"""V1 read-mostly endpoints reporting on a save metadata store."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel

from save_metadata import (
    FileEntry,
    IntegrityService,
    MetadataIOError,
    MetadataRecord,
    MetadataStore,
    StatisticsReport,
    ValidationReport,
    ValidationResult,
)
from save_metadata.service.shared import (
    ErrorResponse,
    PathVariables,
    RouteNames,
    get_integrity_service,
    get_metadata_store,
    route_registry,
    v1_prefix,
)

router = APIRouter(
    responses={404: {"description": "Not found"}},
)


class ReconcileResponse(BaseModel):
    """Response for the /reconcile endpoint."""

    removed: int
    """Number of orphaned entries removed."""


entries_route_subpath = "/entries"
route_registry.register_route(v1_prefix, RouteNames.get_all_entries, entries_route_subpath)


@router.get(
    entries_route_subpath,
    response_model=list[FileEntry],
    summary="Get all tracked save files, most recently registered first",
    operation_id="read_all_entries",
)
def read_all_entries(
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> list[FileEntry]:
    """Return every tracked entry, sorted by last modification time descending."""
    return store.get_all_entries()


entry_route_subpath = f"/entries/{{{PathVariables.filename}}}"
route_registry.register_route(v1_prefix, RouteNames.get_entry, entry_route_subpath)


@router.get(
    entry_route_subpath,
    response_model=FileEntry,
    summary="Get the metadata of a single tracked save file",
    operation_id="read_entry",
    responses={404: {"description": "File is not tracked", "model": ErrorResponse}},
)
def read_entry(
    filename: str,
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> FileEntry:
    """Return the entry for `filename`.

    Raises:
        HTTPException: 404 if the file is not tracked.
    """
    entry = store.get_entry(filename)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Save file {filename} is not tracked",
        )
    return entry


statistics_route_subpath = "/statistics"
route_registry.register_route(v1_prefix, RouteNames.get_statistics, statistics_route_subpath)


@router.get(
    statistics_route_subpath,
    response_model=StatisticsReport,
    summary="Get statistics about the tracked save files",
    operation_id="read_statistics",
)
def read_statistics(
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> StatisticsReport:
    """Return operation counters, size aggregates and configuration of the store."""
    return store.get_statistics()


metadata_route_subpath = "/metadata"
route_registry.register_route(v1_prefix, RouteNames.get_metadata, metadata_route_subpath)


@router.get(
    metadata_route_subpath,
    response_model=MetadataRecord,
    summary="Get the full metadata record",
    operation_id="read_metadata",
)
def read_metadata(
    store: Annotated[MetadataStore, Depends(get_metadata_store)],
) -> MetadataRecord:
    """Return a snapshot of the full metadata record."""
    return store.get_metadata()


validate_all_route_subpath = "/validate"
route_registry.register_route(v1_prefix, RouteNames.validate_all, validate_all_route_subpath)


@router.get(
    validate_all_route_subpath,
    response_model=ValidationReport,
    summary="Validate every tracked save file against its stored checksum",
    operation_id="validate_all_entries",
)
def validate_all_entries(
    service: Annotated[IntegrityService, Depends(get_integrity_service)],
) -> ValidationReport:
    """Validate all tracked files and return the aggregated report."""
    return service.validate_all()


validate_one_route_subpath = f"/validate/{{{PathVariables.filename}}}"
route_registry.register_route(v1_prefix, RouteNames.validate_one, validate_one_route_subpath)


@router.get(
    validate_one_route_subpath,
    response_model=ValidationResult,
    summary="Validate a single save file against its stored checksum",
    operation_id="validate_entry",
)
def validate_entry(
    filename: str,
    service: Annotated[IntegrityService, Depends(get_integrity_service)],
) -> ValidationResult:
    """Validate `filename`. Untracked and missing files are reported as verdicts, not errors."""
    return service.validate_one(filename)


reconcile_route_subpath = "/reconcile"
route_registry.register_route(v1_prefix, RouteNames.reconcile, reconcile_route_subpath)


@router.post(
    reconcile_route_subpath,
    response_model=ReconcileResponse,
    summary="Remove metadata for save files which no longer exist",
    operation_id="reconcile_entries",
    responses={503: {"description": "Metadata could not be persisted", "model": ErrorResponse}},
)
def reconcile_entries(
    service: Annotated[IntegrityService, Depends(get_integrity_service)],
) -> ReconcileResponse:
    """Prune orphaned entries and return how many were removed.

    Raises:
        HTTPException: 503 if the store directory cannot be listed or the record cannot be written.
    """
    try:
        removed = service.reconcile()
    except MetadataIOError as e:
        logger.error(f"Reconciliation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e
    return ReconcileResponse(removed=removed)
