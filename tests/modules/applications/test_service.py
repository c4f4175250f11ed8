"""
Unit tests for internship applications service layer.

These tests cover:
- Application submission (success, duplicates, storage failures)
- Notification dispatch not affecting the submission outcome
- Listing, statistics and lookup
- Status updates
"""

import asyncio
import re
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from internship_portal.core.email import EmailDeliveryError
from internship_portal.modules.applications import notifications, sequence
from internship_portal.modules.applications.models import ApplicationStatus
from internship_portal.modules.applications.repository import (
    EmailAlreadyExistsError,
    InvalidStatusTransitionError,
)
from internship_portal.modules.applications.schemas import ApplicationDetail
from internship_portal.modules.applications.service import (
    ApplicationNotFoundError,
    ApplicationServiceError,
    DuplicateApplicationError,
    InvalidStatusChangeError,
    SubmissionFailedError,
    get_application,
    get_stats,
    list_applications,
    submit_application,
    update_application_status,
)

SERVICE = "internship_portal.modules.applications.service"


class TestServiceErrors:
    """Tests for the service error hierarchy."""

    def test_duplicate_application_error(self):
        error = DuplicateApplicationError()
        assert isinstance(error, ApplicationServiceError)
        assert error.status_code == 409
        assert error.error_code == "DUPLICATE_APPLICATION"

    def test_submission_failed_error(self):
        error = SubmissionFailedError()
        assert error.status_code == 500
        assert error.error_code == "SUBMISSION_FAILED"

    def test_not_found_error_mentions_id(self):
        error = ApplicationNotFoundError("INT-2026-0001")
        assert error.status_code == 404
        assert "INT-2026-0001" in error.message

    def test_invalid_status_change_error(self):
        error = InvalidStatusChangeError(ApplicationStatus.ACCEPTED, ApplicationStatus.PENDING)
        assert error.status_code == 409
        assert error.error_code == "INVALID_STATUS_TRANSITION"


class TestSubmitApplication:
    """Tests for submit_application with a mocked repository."""

    @pytest.mark.asyncio
    async def test_submit_application_success(
        self,
        mock_db,
        sample_application_create,
        sample_application_model,
    ):
        """Successful submission returns the ID and dispatches notifications."""
        with (
            patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get,
            patch(
                f"{SERVICE}.sequence.allocate_application_id", new_callable=AsyncMock
            ) as mock_allocate,
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as mock_create,
            patch(f"{SERVICE}.notifications.dispatch_notifications") as mock_dispatch,
        ):
            mock_get.return_value = None
            mock_allocate.return_value = "INT-2026-0001"
            mock_create.return_value = sample_application_model

            result = await submit_application(mock_db, sample_application_create)

            assert result.success is True
            assert result.application_id == "INT-2026-0001"
            assert "submitted successfully" in result.message

            mock_create.assert_called_once_with(
                mock_db, sample_application_create, "INT-2026-0001"
            )
            mock_dispatch.assert_called_once()
            snapshot = mock_dispatch.call_args.args[0]
            assert isinstance(snapshot, ApplicationDetail)
            assert snapshot.application_id == "INT-2026-0001"
            assert snapshot.email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected_before_allocation(
        self,
        mock_db,
        sample_application_create,
        sample_application_model,
    ):
        """A known email never consumes an application ID."""
        with (
            patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get,
            patch(
                f"{SERVICE}.sequence.allocate_application_id", new_callable=AsyncMock
            ) as mock_allocate,
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as mock_create,
            patch(f"{SERVICE}.notifications.dispatch_notifications") as mock_dispatch,
        ):
            mock_get.return_value = sample_application_model

            with pytest.raises(DuplicateApplicationError):
                await submit_application(mock_db, sample_application_create)

            mock_allocate.assert_not_called()
            mock_create.assert_not_called()
            mock_dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_detected_by_constraint(
        self,
        mock_db,
        sample_application_create,
    ):
        """A concurrent duplicate that passes the pre-check is still rejected."""
        with (
            patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get,
            patch(
                f"{SERVICE}.sequence.allocate_application_id", new_callable=AsyncMock
            ) as mock_allocate,
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as mock_create,
            patch(f"{SERVICE}.notifications.dispatch_notifications") as mock_dispatch,
        ):
            mock_get.return_value = None
            mock_allocate.return_value = "INT-2026-0002"
            mock_create.side_effect = EmailAlreadyExistsError("ada@example.com")

            with pytest.raises(DuplicateApplicationError):
                await submit_application(mock_db, sample_application_create)

            mock_dispatch.assert_not_called()

    @pytest.mark.asyncio
    async def test_allocation_failure_raises_submission_failed(
        self,
        mock_db,
        sample_application_create,
    ):
        """Store failure during allocation means no record and no emails."""
        with (
            patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get,
            patch(
                f"{SERVICE}.sequence.allocate_application_id", new_callable=AsyncMock
            ) as mock_allocate,
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as mock_create,
            patch(f"{SERVICE}.notifications.dispatch_notifications") as mock_dispatch,
        ):
            mock_get.return_value = None
            mock_allocate.side_effect = sequence.StorageUnavailableError("down")

            with pytest.raises(SubmissionFailedError):
                await submit_application(mock_db, sample_application_create)

            mock_create.assert_not_called()
            mock_dispatch.assert_not_called()
            mock_db.rollback.assert_awaited()

    @pytest.mark.asyncio
    async def test_non_email_integrity_error_raises_submission_failed(
        self,
        mock_db,
        sample_application_create,
    ):
        with (
            patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get,
            patch(
                f"{SERVICE}.sequence.allocate_application_id", new_callable=AsyncMock
            ) as mock_allocate,
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as mock_create,
            patch(f"{SERVICE}.notifications.dispatch_notifications"),
        ):
            mock_get.return_value = None
            mock_allocate.return_value = "INT-2026-0003"
            mock_create.side_effect = IntegrityError(
                "INSERT", {}, Exception("UNIQUE constraint failed: application_id")
            )

            with pytest.raises(SubmissionFailedError):
                await submit_application(mock_db, sample_application_create)

    @pytest.mark.asyncio
    async def test_pre_check_failure_raises_submission_failed(
        self,
        mock_db,
        sample_application_create,
    ):
        with patch(f"{SERVICE}.repository.get_by_email", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

            with pytest.raises(SubmissionFailedError):
                await submit_application(mock_db, sample_application_create)


class TestSubmitApplicationIntegration:
    """End-to-end submission against SQLite with emails mocked out."""

    @pytest.mark.asyncio
    async def test_returned_id_matches_format(self, db_session, sample_application_create):
        with (
            patch(
                "internship_portal.modules.applications.notifications.send_applicant_confirmation",
                new_callable=AsyncMock,
            ),
            patch(
                "internship_portal.modules.applications.notifications.send_admin_notification",
                new_callable=AsyncMock,
            ),
        ):
            result = await submit_application(db_session, sample_application_create)
            await notifications.drain_notifications()

        year = datetime.now(UTC).year
        assert re.fullmatch(rf"INT-{year}-\d{{4,}}", result.application_id)
        assert result.application_id.endswith("-0001")

    @pytest.mark.asyncio
    async def test_duplicate_submission_does_not_advance_counter(
        self, db_session, application_create_factory
    ):
        with (
            patch(
                "internship_portal.modules.applications.notifications.send_applicant_confirmation",
                new_callable=AsyncMock,
            ),
            patch(
                "internship_portal.modules.applications.notifications.send_admin_notification",
                new_callable=AsyncMock,
            ),
        ):
            first = await submit_application(db_session, application_create_factory())

            with pytest.raises(DuplicateApplicationError):
                await submit_application(
                    db_session, application_create_factory(email="ADA@example.com")
                )

            await notifications.drain_notifications()

        assert first.application_id.endswith("-0001")
        assert await sequence.get_current_value(db_session) == 1

    @pytest.mark.asyncio
    async def test_ids_are_unique_across_submissions(self, db_session, application_create_factory):
        with (
            patch(
                "internship_portal.modules.applications.notifications.send_applicant_confirmation",
                new_callable=AsyncMock,
            ),
            patch(
                "internship_portal.modules.applications.notifications.send_admin_notification",
                new_callable=AsyncMock,
            ),
        ):
            ids = [
                (
                    await submit_application(
                        db_session, application_create_factory(email=f"user{i}@example.com")
                    )
                ).application_id
                for i in range(5)
            ]
            await notifications.drain_notifications()

        assert len(set(ids)) == 5
        assert [int(application_id.rsplit("-", 1)[1]) for application_id in ids] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_failing_emails_do_not_change_response(
        self, db_session, sample_application_create
    ):
        with (
            patch(
                "internship_portal.modules.applications.notifications.send_applicant_confirmation",
                new_callable=AsyncMock,
                side_effect=EmailDeliveryError("ada@example.com", "subject", "provider down"),
            ) as mock_applicant,
            patch(
                "internship_portal.modules.applications.notifications.send_admin_notification",
                new_callable=AsyncMock,
                side_effect=RuntimeError("boom"),
            ) as mock_admin,
        ):
            result = await submit_application(db_session, sample_application_create)
            await notifications.drain_notifications()

        assert result.success is True
        assert result.application_id.endswith("-0001")
        mock_applicant.assert_awaited_once()
        mock_admin.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_submissions_same_email_accept_exactly_one(
        self, session_factory, application_create_factory
    ):
        """Racing submissions for one email: one succeeds, the rest are duplicates."""

        async def submit_in_own_session(i: int):
            async with session_factory() as session:
                return await submit_application(
                    session, application_create_factory(fullName=f"Ada Attempt {i}")
                )

        with (
            patch(
                "internship_portal.modules.applications.notifications.send_applicant_confirmation",
                new_callable=AsyncMock,
            ),
            patch(
                "internship_portal.modules.applications.notifications.send_admin_notification",
                new_callable=AsyncMock,
            ),
        ):
            results = await asyncio.gather(
                *(submit_in_own_session(i) for i in range(5)), return_exceptions=True
            )
            await notifications.drain_notifications()

        accepted = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, BaseException)]
        assert len(accepted) == 1
        assert accepted[0].application_id.endswith("-0001")
        assert len(rejected) == 4
        assert all(isinstance(r, DuplicateApplicationError) for r in rejected)

        async with session_factory() as session:
            assert await sequence.get_current_value(session) == 1


class TestListApplications:
    """Tests for list_applications."""

    @pytest.mark.asyncio
    async def test_pagination_metadata(self, mock_db, sample_application_model):
        with patch(
            f"{SERVICE}.repository.get_applications", new_callable=AsyncMock
        ) as mock_query:
            mock_query.return_value = ([sample_application_model], 45)

            result = await list_applications(mock_db, page=3, limit=20)

            assert result.total == 45
            assert result.total_pages == 3
            assert result.current_page == 3
            assert len(result.applications) == 1
            mock_query.assert_called_once_with(mock_db, status=None, skip=40, limit=20)

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, mock_db):
        with patch(
            f"{SERVICE}.repository.get_applications", new_callable=AsyncMock
        ) as mock_query:
            mock_query.return_value = ([], 0)

            result = await list_applications(mock_db, page=0, limit=1000)

            assert result.limit == 100
            assert result.current_page == 1
            assert result.total_pages == 0

    @pytest.mark.asyncio
    async def test_status_filter_is_passed_through(self, mock_db):
        with patch(
            f"{SERVICE}.repository.get_applications", new_callable=AsyncMock
        ) as mock_query:
            mock_query.return_value = ([], 0)

            await list_applications(mock_db, status=ApplicationStatus.ACCEPTED)

            assert mock_query.call_args.kwargs["status"] == ApplicationStatus.ACCEPTED


class TestGetStats:
    """Tests for get_stats."""

    @pytest.mark.asyncio
    async def test_get_stats(self, mock_db):
        counts = {"total": 6, "pending": 3, "reviewed": 1, "accepted": 1, "rejected": 1}
        with patch(
            f"{SERVICE}.repository.get_status_counts", new_callable=AsyncMock
        ) as mock_counts:
            mock_counts.return_value = counts

            stats = await get_stats(mock_db)

            assert stats.model_dump() == counts


class TestGetApplication:
    """Tests for get_application."""

    @pytest.mark.asyncio
    async def test_found(self, mock_db, sample_application_model):
        with patch(
            f"{SERVICE}.repository.get_by_application_id", new_callable=AsyncMock
        ) as mock_get:
            mock_get.return_value = sample_application_model

            assert await get_application(mock_db, "INT-2026-0001") is sample_application_model

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db):
        with patch(
            f"{SERVICE}.repository.get_by_application_id", new_callable=AsyncMock
        ) as mock_get:
            mock_get.return_value = None

            with pytest.raises(ApplicationNotFoundError):
                await get_application(mock_db, "INT-2026-9999")


class TestUpdateApplicationStatus:
    """Tests for update_application_status."""

    @pytest.mark.asyncio
    async def test_valid_transition(self, mock_db, sample_application_model):
        updated = MagicMock()
        updated.status = ApplicationStatus.REVIEWED
        with (
            patch(
                f"{SERVICE}.repository.get_by_application_id", new_callable=AsyncMock
            ) as mock_get,
            patch(f"{SERVICE}.repository.update_status", new_callable=AsyncMock) as mock_update,
        ):
            mock_get.return_value = sample_application_model
            mock_update.return_value = updated

            result = await update_application_status(
                mock_db, "INT-2026-0001", ApplicationStatus.REVIEWED
            )

            assert result is updated
            mock_update.assert_called_once_with(
                mock_db, "INT-2026-0001", ApplicationStatus.REVIEWED
            )

    @pytest.mark.asyncio
    async def test_unknown_application(self, mock_db):
        with patch(
            f"{SERVICE}.repository.get_by_application_id", new_callable=AsyncMock
        ) as mock_get:
            mock_get.return_value = None

            with pytest.raises(ApplicationNotFoundError):
                await update_application_status(
                    mock_db, "INT-2026-9999", ApplicationStatus.REVIEWED
                )

    @pytest.mark.asyncio
    async def test_invalid_transition(self, mock_db, sample_application_model):
        with (
            patch(
                f"{SERVICE}.repository.get_by_application_id", new_callable=AsyncMock
            ) as mock_get,
            patch(f"{SERVICE}.repository.update_status", new_callable=AsyncMock) as mock_update,
        ):
            mock_get.return_value = sample_application_model
            mock_update.side_effect = InvalidStatusTransitionError(
                ApplicationStatus.ACCEPTED, ApplicationStatus.PENDING
            )

            with pytest.raises(InvalidStatusChangeError) as exc_info:
                await update_application_status(
                    mock_db, "INT-2026-0001", ApplicationStatus.PENDING
                )

            assert "accepted" in exc_info.value.message
