"""
The generation saga.

One request moves through

    AUTHORIZING -> QUOTA_CHECKING -> GENERATING -> BILLING -> PERSISTING -> DONE

and stops in FAILED on the first error. Each step talks to one resource
through its own session and commits on its own; there is no transaction
spanning the quota ledger and the version store.

Tokens are debited before the version is written. If writing the version
fails, the debit is refunded, so a failure can cost the system a backend
call but never costs the user tokens for output they did not get. Failures
up to and including BILLING leave no side effects behind.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vibecode.config import settings
from vibecode.db.base import utcnow
from vibecode.errors import (
    BillingRaceError,
    GenerationBackendError,
    NotFound,
    PersistError,
    QuotaExceeded,
    VibecodeError,
)
from vibecode.models.prompt_record import PromptRecord
from vibecode.pipeline.artifacts import build_generated_file
from vibecode.pipeline.backend import GenerationBackend
from vibecode.schemas.generation import GenerateResponse
from vibecode.services import project_service, usage_service, version_service
from vibecode.services.access_policy import Intent

logger = logging.getLogger(__name__)

MAX_VERSION_MESSAGE = 1000


class SagaState(str, enum.Enum):
    AUTHORIZING = "authorizing"
    QUOTA_CHECKING = "quota_checking"
    GENERATING = "generating"
    BILLING = "billing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class GenerationSaga:
    """Runs a single generation request. Instances are single-use."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        backend: GenerationBackend,
        timeout: float | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.backend = backend
        self.timeout = timeout if timeout is not None else settings.generation_timeout_seconds
        self.state = SagaState.AUTHORIZING
        self.failed_at: SagaState | None = None
        self.cost = 0

    async def run(self, identity: uuid.UUID, project_id: uuid.UUID, prompt: str) -> GenerateResponse:
        if self.state is not SagaState.AUTHORIZING:
            raise RuntimeError("a GenerationSaga can only run once")

        try:
            await self._authorize(identity, project_id)
            self._enter(SagaState.QUOTA_CHECKING)
            await self._check_quota(identity, prompt)
            self._enter(SagaState.GENERATING)
            text = await self._generate(prompt)
            # Once tokens are debited the request must reach a version or a refund
            settlement = asyncio.ensure_future(self._bill_and_persist(identity, project_id, prompt, text))
            try:
                version_number = await asyncio.shield(settlement)
            except asyncio.CancelledError:
                settlement.add_done_callback(functools.partial(self._settle_detached, project_id))
                raise
        except VibecodeError as exc:
            self._fail(exc, project_id)
            raise

        self._enter(SagaState.DONE)
        return GenerateResponse(
            project_id=project_id,
            success=True,
            message=f"AI generation completed. Tokens used: {self.cost}",
            tokens_charged=self.cost,
            version_number=version_number,
        )

    def _enter(self, state: SagaState) -> None:
        logger.debug("Generation saga %s -> %s", self.state.value, state.value)
        self.state = state

    def _fail(self, exc: VibecodeError, project_id: uuid.UUID) -> None:
        exc.saga_state = self.state.value
        self.failed_at = self.state
        self.state = SagaState.FAILED
        logger.warning(
            "Generation for project %s failed at %s: %s (%s)",
            project_id, self.failed_at.value, exc.kind.value, exc.message,
        )

    def _settle_detached(self, project_id: uuid.UUID, settlement: asyncio.Future) -> None:
        """Record how BILLING/PERSISTING ended after the caller was cancelled."""
        if settlement.cancelled():
            return
        exc = settlement.exception()
        if exc is None:
            self._enter(SagaState.DONE)
            logger.info(
                "Generation for project %s saved as version %d after its caller went away",
                project_id, settlement.result(),
            )
        elif isinstance(exc, VibecodeError):
            self._fail(exc, project_id)
        else:
            self.failed_at = self.state
            self.state = SagaState.FAILED
            logger.error(
                "Generation for project %s failed at %s after its caller went away",
                project_id, self.failed_at.value, exc_info=exc,
            )

    async def _authorize(self, identity: uuid.UUID, project_id: uuid.UUID) -> None:
        async with self.session_factory() as db:
            await project_service.get_project_for(db, project_id, identity, Intent.WRITE)

    async def _check_quota(self, identity: uuid.UUID, prompt: str) -> None:
        self.cost = usage_service.estimate_tokens(prompt)
        async with self.session_factory() as db:
            account = await usage_service.get_balance(db, identity)
        if account.remaining_tokens < self.cost:
            raise QuotaExceeded(f"{self.cost} tokens required, {account.remaining_tokens} remaining")

    async def _generate(self, prompt: str) -> str:
        try:
            text = await asyncio.wait_for(self.backend.generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise GenerationBackendError(f"generation timed out after {self.timeout}s") from exc
        if not text or not text.strip():
            raise GenerationBackendError("generation backend returned no content")
        return text

    async def _bill_and_persist(
        self, identity: uuid.UUID, project_id: uuid.UUID, prompt: str, text: str
    ) -> int:
        self._enter(SagaState.BILLING)
        async with self.session_factory() as db:
            try:
                await usage_service.reserve_and_commit(db, identity, self.cost)
            except QuotaExceeded as exc:
                raise BillingRaceError(f"quota used up by a concurrent request: {exc.message}") from exc
            except SQLAlchemyError as exc:
                raise PersistError(f"could not debit tokens: {exc}") from exc

        self._enter(SagaState.PERSISTING)
        generated = build_generated_file(text)
        record = PromptRecord(
            prompt_text=prompt,
            tokens_used=self.cost,
            model=getattr(self.backend, "model", ""),
            generated_at=utcnow(),
        )
        try:
            async with self.session_factory() as db:
                project = await version_service.append_version(
                    db,
                    project_id,
                    [generated],
                    message=f"AI generation: {prompt}"[:MAX_VERSION_MESSAGE],
                    keep_existing=True,
                    prompt=record,
                )
        except (NotFound, PersistError, SQLAlchemyError) as exc:
            refunded = await self._refund(identity)
            raise PersistError(f"generated output was not saved: {exc}", refunded=refunded) from exc

        return project.versions[-1].version_number

    async def _refund(self, identity: uuid.UUID) -> bool:
        try:
            async with self.session_factory() as db:
                return await usage_service.refund(db, identity, self.cost)
        except SQLAlchemyError:
            logger.exception("Refund of %d tokens to %s failed; ledger needs reconciling", self.cost, identity)
            return False


async def run_generation(
    session_factory: async_sessionmaker[AsyncSession],
    backend: GenerationBackend,
    identity: uuid.UUID,
    project_id: uuid.UUID,
    prompt: str,
) -> GenerateResponse:
    return await GenerationSaga(session_factory, backend).run(identity, project_id, prompt)
