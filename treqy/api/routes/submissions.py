"""
Submission endpoints: upload, extraction, review and deletion.

Every route acts for the studio named in the X-Studio-ID header.
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from treqy.api.dependencies import (
    get_browse_catalog_use_case,
    get_delete_submission_use_case,
    get_extract_materials_use_case,
    get_objects,
    get_review_submission_use_case,
    get_studio_id,
    get_submit_document_use_case,
)
from treqy.api.routes.catalog import manufacturer_to_response, material_to_response
from treqy.application.dto.requests import (
    ApproveSubmissionRequest,
    EditPendingMaterialRequest,
    ManualExtractionRequest,
    SubmitDocumentRequest,
)
from treqy.application.dto.responses import (
    ApprovalResponse,
    DeletionResponse,
    DuplicateListResponse,
    DuplicateMatchResponse,
    ErrorResponse,
    ExtractionResponse,
    ManufacturerGroupResponse,
    MaterialExtractionResponse,
    PendingMaterialListResponse,
    PendingMaterialResponse,
    RejectionResponse,
    SubmissionListResponse,
    SubmissionResponse,
)
from treqy.application.use_cases import (
    BrowseCatalogUseCase,
    DeleteSubmissionUseCase,
    ExtractionOutcome,
    ExtractMaterialsUseCase,
    ReviewSubmissionUseCase,
    SubmitDocumentUseCase,
)
from treqy.core.entities.extraction import PendingMaterial, PendingMaterialStatus
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.interfaces import IObjectStorage

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


def _submission_to_response(
    submission: Submission, storage: IObjectStorage | None = None
) -> SubmissionResponse:
    file_url = None
    if storage is not None and submission.object_path:
        file_url = storage.public_url(submission.object_path)
    return SubmissionResponse(
        id=submission.id,
        studio_id=submission.studio_id,
        project_id=submission.project_id,
        client_id=submission.client_id,
        file_name=submission.file_name,
        file_size=submission.file_size,
        mime_type=submission.mime_type,
        object_path=submission.object_path,
        file_url=file_url,
        notes=submission.notes,
        status=submission.status.value,
        last_error=submission.last_error,
        created_at=submission.created_at,
        updated_at=submission.updated_at,
        processed_at=submission.processed_at,
    )


def _pending_to_response(pending: PendingMaterial) -> PendingMaterialResponse:
    return PendingMaterialResponse(
        id=pending.id,
        submission_id=pending.submission_id,
        manufacturer_name=pending.manufacturer_name,
        position=pending.position,
        name=pending.name,
        tag=pending.tag,
        category=pending.category,
        subcategory=pending.subcategory,
        location=pending.location,
        reference_sku=pending.reference_sku,
        dimensions=pending.dimensions,
        notes=pending.notes,
        status=pending.status.value,
        material_id=pending.material_id,
        approved_at=pending.approved_at,
    )


def _extraction_to_response(submission_id: str, outcome: ExtractionOutcome) -> ExtractionResponse:
    return ExtractionResponse(
        submission_id=submission_id,
        status=outcome.submission.status.value,
        groups=[
            ManufacturerGroupResponse(
                manufacturer_name=group.manufacturer_name,
                materials=[
                    MaterialExtractionResponse(**material.model_dump())
                    for material in group.materials
                ],
            )
            for group in outcome.result.groups
        ],
        total_materials=outcome.result.total_materials,
        pending_materials=[_pending_to_response(p) for p in outcome.pending],
    )


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid upload"},
        500: {"model": ErrorResponse, "description": "Storage or persistence failure"},
    },
)
async def submit_document(
    file: UploadFile = File(...),
    project_id: str | None = Form(default=None),
    client_id: str | None = Form(default=None),
    notes: str | None = Form(default=None),
    studio_id: str = Depends(get_studio_id),
    use_case: SubmitDocumentUseCase = Depends(get_submit_document_use_case),
    storage: IObjectStorage = Depends(get_objects),
) -> SubmissionResponse:
    """
    Upload a finish schedule PDF.

    Stores the document and creates a pending submission.
    """
    content = await file.read()
    request = SubmitDocumentRequest(project_id=project_id, client_id=client_id, notes=notes)

    submission = await use_case.execute(
        content,
        file.filename or "",
        studio_id,
        request,
        content_type=file.content_type,
    )
    return _submission_to_response(submission, storage)


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    status_filter: SubmissionStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    studio_id: str = Depends(get_studio_id),
    use_case: BrowseCatalogUseCase = Depends(get_browse_catalog_use_case),
    storage: IObjectStorage = Depends(get_objects),
) -> SubmissionListResponse:
    """List the studio's submissions, newest first."""
    submissions = await use_case.list_submissions(
        studio_id, status=status_filter, limit=limit, offset=offset
    )
    return SubmissionListResponse(
        submissions=[_submission_to_response(s, storage) for s in submissions],
        total=len(submissions),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def get_submission(
    submission_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: BrowseCatalogUseCase = Depends(get_browse_catalog_use_case),
    storage: IObjectStorage = Depends(get_objects),
) -> SubmissionResponse:
    """Get one submission."""
    submission = await use_case.get_submission(studio_id, submission_id)
    return _submission_to_response(submission, storage)


@router.post(
    "/{submission_id}/extract",
    response_model=ExtractionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Submission not found"},
        409: {"model": ErrorResponse, "description": "Submission is past extraction"},
        422: {"model": ErrorResponse, "description": "Model reply could not be parsed"},
        503: {"model": ErrorResponse, "description": "Extraction service unavailable"},
    },
)
async def extract_materials(
    submission_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: ExtractMaterialsUseCase = Depends(get_extract_materials_use_case),
) -> ExtractionResponse:
    """
    Run extraction on a submission.

    Returns the manufacturer groups and the provisional rows saved for review.
    """
    outcome = await use_case.execute(studio_id, submission_id)
    return _extraction_to_response(submission_id, outcome)


@router.post(
    "/{submission_id}/extraction",
    response_model=ExtractionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Submission not found"},
        409: {"model": ErrorResponse, "description": "Submission is past extraction"},
        422: {"model": ErrorResponse, "description": "Text could not be parsed"},
    },
)
async def submit_manual_extraction(
    submission_id: str,
    request: ManualExtractionRequest,
    studio_id: str = Depends(get_studio_id),
    use_case: ExtractMaterialsUseCase = Depends(get_extract_materials_use_case),
) -> ExtractionResponse:
    """
    Enter the extraction result by hand.

    The text is parsed exactly like a model reply and saved for review,
    without calling the extraction service.
    """
    outcome = await use_case.submit_reply(studio_id, submission_id, request.raw_text)
    return _extraction_to_response(submission_id, outcome)


@router.get(
    "/{submission_id}/duplicates",
    response_model=DuplicateListResponse,
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def find_duplicates(
    submission_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: ReviewSubmissionUseCase = Depends(get_review_submission_use_case),
) -> DuplicateListResponse:
    """
    Catalog materials that pending rows already match on SKU and manufacturer.

    Pass a match back in the approval's links to reuse it.
    """
    matches = await use_case.find_duplicates(studio_id, submission_id)
    return DuplicateListResponse(
        submission_id=submission_id,
        duplicates=[
            DuplicateMatchResponse(
                pending_id=pending_id,
                matches=[material_to_response(m) for m in materials],
            )
            for pending_id, materials in matches.items()
        ],
        total=len(matches),
    )


@router.get(
    "/{submission_id}/materials",
    response_model=PendingMaterialListResponse,
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def list_pending_materials(
    submission_id: str,
    status_filter: PendingMaterialStatus | None = Query(default=None, alias="status"),
    studio_id: str = Depends(get_studio_id),
    use_case: ReviewSubmissionUseCase = Depends(get_review_submission_use_case),
) -> PendingMaterialListResponse:
    """List a submission's provisional materials."""
    pending = await use_case.list_pending_materials(studio_id, submission_id, status_filter)
    return PendingMaterialListResponse(
        submission_id=submission_id,
        materials=[_pending_to_response(p) for p in pending],
        total=len(pending),
    )


@router.patch(
    "/{submission_id}/materials/{pending_id}",
    response_model=PendingMaterialResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Material not found"},
        409: {"model": ErrorResponse, "description": "Submission not under review"},
    },
)
async def edit_pending_material(
    submission_id: str,
    pending_id: str,
    changes: EditPendingMaterialRequest,
    studio_id: str = Depends(get_studio_id),
    use_case: ReviewSubmissionUseCase = Depends(get_review_submission_use_case),
) -> PendingMaterialResponse:
    """Correct a provisional material before approval."""
    pending = await use_case.edit_pending_material(studio_id, submission_id, pending_id, changes)
    return _pending_to_response(pending)


@router.post(
    "/{submission_id}/approve",
    response_model=ApprovalResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Submission or material not found"},
        409: {"model": ErrorResponse, "description": "Submission not ready for review"},
    },
)
async def approve_submission(
    submission_id: str,
    request: ApproveSubmissionRequest | None = None,
    studio_id: str = Depends(get_studio_id),
    use_case: ReviewSubmissionUseCase = Depends(get_review_submission_use_case),
) -> ApprovalResponse:
    """
    Commit provisional materials into the catalog.

    All pending rows are committed unless pending_ids selects a subset;
    the rest are marked rejected. Rows named in links are attached to an
    existing catalog material instead of creating a new one.
    """
    outcome = await use_case.approve(studio_id, submission_id, request)
    return ApprovalResponse(
        submission_id=submission_id,
        status=SubmissionStatus.COMPLETED.value,
        project_id=outcome.project_id,
        materials=[material_to_response(m) for m in outcome.materials],
        manufacturers_created=[manufacturer_to_response(m) for m in outcome.manufacturers_created],
        manufacturers_reused=outcome.manufacturers_reused,
        linked_materials=[material_to_response(m) for m in outcome.linked_materials],
        rejected_count=outcome.rejected_count,
    )


@router.post(
    "/{submission_id}/reject",
    response_model=RejectionResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Submission not found"},
        409: {"model": ErrorResponse, "description": "Submission already decided"},
    },
)
async def reject_submission(
    submission_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: ReviewSubmissionUseCase = Depends(get_review_submission_use_case),
) -> RejectionResponse:
    """Reject a submission and discard its provisional materials."""
    discarded = await use_case.reject(studio_id, submission_id)
    return RejectionResponse(
        submission_id=submission_id,
        status=SubmissionStatus.REJECTED.value,
        discarded_materials=discarded,
    )


@router.delete(
    "/{submission_id}",
    response_model=DeletionResponse,
    responses={404: {"model": ErrorResponse, "description": "Submission not found"}},
)
async def delete_submission(
    submission_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: DeleteSubmissionUseCase = Depends(get_delete_submission_use_case),
) -> DeletionResponse:
    """
    Delete a submission, its provisional materials and its document.

    Approved catalog materials are kept.
    """
    result = await use_case.execute(studio_id, submission_id)
    return DeletionResponse(
        submission_id=submission_id,
        discarded_materials=result.discarded_materials,
        orphaned_object_path=result.orphaned_object_path,
    )
