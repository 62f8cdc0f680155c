"""
Extract Materials Use Case.

Runs the multimodal model over a submitted schedule, parses the reply into
manufacturer groups and stores them as provisional materials for review.
"""

from dataclasses import dataclass, field

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from treqy.config import get_logger, get_settings
from treqy.core.entities.extraction import ExtractionResult, PendingMaterial
from treqy.core.entities.submission import Submission, SubmissionStatus
from treqy.core.exceptions import (
    ExtractionError,
    ExtractionServiceUnavailableError,
    InvalidStateTransitionError,
    StorageError,
    StorageFailureError,
    SubmissionNotFoundError,
)
from treqy.core.interfaces import IExtractionProvider, IObjectStorage, ISubmissionStore
from treqy.core.services.extraction_parser import parse_extraction_response

logger = get_logger(__name__)


@dataclass
class ExtractionOutcome:
    """Result of a successful extraction run."""

    submission: Submission
    result: ExtractionResult
    pending: list[PendingMaterial] = field(default_factory=list)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts."""
    logger.warning(
        "extraction_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


class ExtractMaterialsUseCase:
    """
    Use case for extracting materials from a submission.

    Flow:
    1. Move pending -> processing (a processing submission is re-run)
    2. Read the stored document
    3. Call the extraction provider (retried per settings)
    4. Parse the reply into manufacturer groups
    5. Save provisional rows and move processing -> ready_for_review

    Any failure in steps 2-4 leaves the submission processing with
    last_error set, and the error propagates.
    """

    def __init__(
        self,
        submission_store: ISubmissionStore | None = None,
        object_storage: IObjectStorage | None = None,
        provider: IExtractionProvider | None = None,
        max_attempts: int | None = None,
    ):
        self._submission_store = submission_store
        self._object_storage = object_storage
        self._provider = provider
        self._max_attempts = max_attempts

    async def _get_submission_store(self) -> ISubmissionStore:
        if self._submission_store is None:
            from treqy.infrastructure.storage.sqlite import get_submission_store

            self._submission_store = await get_submission_store()
        return self._submission_store

    def _get_object_storage(self) -> IObjectStorage:
        if self._object_storage is None:
            from treqy.infrastructure.storage.local_objects import get_object_storage

            self._object_storage = get_object_storage()
        return self._object_storage

    def _get_provider(self) -> IExtractionProvider:
        if self._provider is None:
            from treqy.infrastructure.llm import get_extraction_provider

            self._provider = get_extraction_provider()
        return self._provider

    def _get_retry_decorator(self):
        """Tenacity retry decorator for the extraction call."""
        settings = get_settings().extraction
        attempts = self._max_attempts or settings.max_attempts
        return retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=settings.retry_delay,
                min=settings.retry_delay,
                max=settings.retry_delay * (settings.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(ExtractionServiceUnavailableError),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def _begin(self, store: ISubmissionStore, submission: Submission) -> None:
        """Enter processing, or accept a re-run of a processing submission."""
        if submission.status == SubmissionStatus.PROCESSING:
            logger.info("extraction_rerun", submission_id=submission.id)
            return

        submission.ensure_can_transition_to(SubmissionStatus.PROCESSING)
        moved = await store.transition_status(
            submission.studio_id,
            submission.id,
            SubmissionStatus.PENDING,
            SubmissionStatus.PROCESSING,
        )
        if not moved:
            current = await store.get_submission(submission.studio_id, submission.id)
            raise InvalidStateTransitionError(
                submission.id,
                current.status.value if current else "deleted",
                SubmissionStatus.PROCESSING.value,
            )

    async def execute(self, studio_id: str, submission_id: str) -> ExtractionOutcome:
        """
        Extract materials from a submission.

        Raises:
            SubmissionNotFoundError: Unknown submission for this studio
            InvalidStateTransitionError: Submission is past processing, or
                was rejected while the model was running
            StorageFailureError: Stored document could not be read
            ExtractionServiceUnavailableError: Provider failed
            NoStructuredDataFoundError: Reply holds no JSON array
            MalformedExtractionResponseError: Reply array is invalid
        """
        store = await self._get_submission_store()
        submission = await store.get_submission(studio_id, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        await self._begin(store, submission)
        logger.info("extraction_started", submission_id=submission_id, studio_id=studio_id)

        try:
            if not submission.object_path:
                raise StorageFailureError("get", "", "submission has no stored document")
            document = await self._get_object_storage().get(submission.object_path)

            provider = self._get_provider()
            extract = self._get_retry_decorator()(provider.extract)
            raw_text = await extract(document, submission.mime_type)

            result = parse_extraction_response(raw_text)
        except (StorageError, ExtractionError) as e:
            logger.error(
                "extraction_failed",
                submission_id=submission_id,
                error_code=e.code,
                error=e.message,
            )
            await store.record_error(studio_id, submission_id, f"{e.code}: {e.message}")
            raise

        return await self._save(store, submission, result)

    async def submit_reply(
        self, studio_id: str, submission_id: str, raw_text: str
    ) -> ExtractionOutcome:
        """
        Save an extraction reply supplied by an operator.

        The text takes the same path as a model reply, so a submission the
        model keeps failing on can still reach review. The provider is not
        called.

        Raises:
            SubmissionNotFoundError: Unknown submission for this studio
            InvalidStateTransitionError: Submission is past processing
            NoStructuredDataFoundError: Text holds no JSON array
            MalformedExtractionResponseError: Text array is invalid
        """
        store = await self._get_submission_store()
        submission = await store.get_submission(studio_id, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        await self._begin(store, submission)
        logger.info("manual_extraction_started", submission_id=submission_id, studio_id=studio_id)

        try:
            result = parse_extraction_response(raw_text)
        except ExtractionError as e:
            logger.error(
                "manual_extraction_failed",
                submission_id=submission_id,
                error_code=e.code,
                error=e.message,
            )
            await store.record_error(studio_id, submission_id, f"{e.code}: {e.message}")
            raise

        return await self._save(store, submission, result)

    async def _save(
        self, store: ISubmissionStore, submission: Submission, result: ExtractionResult
    ) -> ExtractionOutcome:
        """Turn parsed groups into provisional rows and hand them to review."""
        studio_id, submission_id = submission.studio_id, submission.id
        pending: list[PendingMaterial] = []
        for group in result.groups:
            for material in group.materials:
                pending.append(
                    PendingMaterial.from_extraction(
                        studio_id=studio_id,
                        submission_id=submission_id,
                        manufacturer_name=group.manufacturer_name,
                        material=material,
                        position=len(pending),
                    )
                )

        saved = await store.save_extraction(studio_id, submission_id, pending)
        submission = await store.get_submission(studio_id, submission_id) or submission

        logger.info(
            "extraction_completed",
            submission_id=submission_id,
            groups=len(result.groups),
            total_materials=result.total_materials,
        )
        return ExtractionOutcome(submission=submission, result=result, pending=saved)
