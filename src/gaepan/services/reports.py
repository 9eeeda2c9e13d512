"""Report intake, operator review and cascading takedown."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Delete, Select, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gaepan.core.errors import NotFoundError, StoreError, ValidationError
from gaepan.core.settings import settings
from gaepan.models import (
    Ballot,
    BallotEvent,
    Comment,
    CommentLike,
    Notification,
    Report,
    Trial,
    TrialLike,
    TrialView,
)
from gaepan.models.report import TARGET_COMMENT, TARGET_POST, TARGET_TYPES

logger = logging.getLogger(__name__)


@dataclass
class DeletionReport:
    """Ordered record of a cascading deletion: (step name, rows removed)."""

    target_type: str
    target_id: int
    steps: list[tuple[str, int]] = field(default_factory=list)

    @property
    def removed(self) -> dict[str, int]:
        return dict(self.steps)


def run_deletion(db: Session, record: DeletionReport, steps: list[tuple[str, Delete]]) -> DeletionReport:
    """Execute ``steps`` in order inside one transaction, recording row counts.

    A failing step rolls everything back and is named in the raised error.
    """
    current = "start"
    try:
        for name, statement in steps:
            current = name
            result = db.execute(statement.execution_options(synchronize_session="fetch"))
            record.steps.append((name, int(result.rowcount or 0)))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "Deletion of %s %s failed at step %s",
            record.target_type,
            record.target_id,
            current,
            exc_info=True,
        )
        raise StoreError(f"Deletion failed at step '{current}'", state={"step": current}) from exc
    logger.info("Deleted %s %s: %s", record.target_type, record.target_id, record.removed)
    return record


@dataclass(frozen=True)
class ReportView:
    """A report row with a snapshot of the reported content (None if gone)."""

    report: Report
    target: dict[str, Any] | None
    trial_title: str | None = None


class ReportService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _target_exists(self, target_type: str, target_id: int) -> bool:
        model = Trial if target_type == TARGET_POST else Comment
        return self.db.scalar(select(model.id).where(model.id == target_id)) is not None

    def file_report(self, target_type: str, target_id: int, reason: str | None = None) -> Report:
        """Flag a trial or comment for operator review."""
        if target_type not in TARGET_TYPES:
            raise ValidationError("target_type must be 'post' or 'comment'")
        if not isinstance(target_id, int) or target_id <= 0:
            raise ValidationError("target_id is required")
        try:
            if not self._target_exists(target_type, target_id):
                raise NotFoundError(f"{target_type} {target_id} not found")
            report = Report(
                target_type=target_type,
                target_id=target_id,
                reason=(reason or "").strip() or None,
            )
            self.db.add(report)
            self.db.commit()
            self.db.refresh(report)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to file report") from exc
        logger.info("Report %s filed against %s %s", report.id, target_type, target_id)
        return report

    def _snapshot(self, report: Report) -> ReportView:
        try:
            if report.target_type == TARGET_POST:
                trial = self.db.get(Trial, report.target_id)
                if trial is None:
                    return ReportView(report=report, target=None)
                return ReportView(
                    report=report,
                    target={
                        "id": trial.id,
                        "title": trial.title,
                        "body": trial.body,
                        "created_at": trial.created_at,
                        "author_ip": trial.author_ip,
                    },
                    trial_title=trial.title,
                )
            comment = self.db.get(Comment, report.target_id)
            if comment is None:
                return ReportView(report=report, target=None)
            trial_title = self.db.scalar(select(Trial.title).where(Trial.id == comment.trial_id))
            return ReportView(
                report=report,
                target={
                    "id": comment.id,
                    "body": comment.body,
                    "created_at": comment.created_at,
                    "trial_id": comment.trial_id,
                    "author_ip": comment.author_ip,
                },
                trial_title=trial_title,
            )
        except SQLAlchemyError as exc:
            logger.error("Snapshot failed for report %s: %s", report.id, exc)
            return ReportView(report=report, target=None)

    def list_open_reports(self, limit: int | None = None) -> list[ReportView]:
        """Open reports newest first, each joined with a snapshot of its target."""
        try:
            reports = list(
                self.db.scalars(
                    select(Report)
                    .order_by(Report.created_at.desc(), Report.id.desc())
                    .limit(limit or settings.report_list_limit)
                )
            )
        except SQLAlchemyError as exc:
            raise StoreError("Failed to list reports") from exc
        return [self._snapshot(report) for report in reports]

    def dismiss_report(self, report_id: int) -> None:
        """Remove a report row. The reported content is left untouched."""
        try:
            result = self.db.execute(delete(Report).where(Report.id == report_id))
            if not result.rowcount:
                self.db.rollback()
                raise NotFoundError(f"Report {report_id} not found")
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to dismiss report") from exc
        logger.info("Report %s dismissed", report_id)

    # --- Cascading takedown -------------------------------------------------------------
    def delete_trial(self, trial_id: int) -> DeletionReport:
        """Delete a trial and everything that depends on it, in one transaction."""
        try:
            exists = self.db.scalar(select(Trial.id).where(Trial.id == trial_id))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load trial") from exc
        if exists is None:
            raise NotFoundError(f"Trial {trial_id} not found")

        comment_ids = select(Comment.id).where(Comment.trial_id == trial_id)
        steps: list[tuple[str, Delete]] = [
            (
                "comment_reports",
                delete(Report).where(
                    Report.target_type == TARGET_COMMENT, Report.target_id.in_(comment_ids)
                ),
            ),
            ("comment_likes", delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids))),
            ("comments", delete(Comment).where(Comment.trial_id == trial_id)),
            ("ballots", delete(Ballot).where(Ballot.trial_id == trial_id)),
            ("ballot_events", delete(BallotEvent).where(BallotEvent.trial_id == trial_id)),
            ("trial_likes", delete(TrialLike).where(TrialLike.trial_id == trial_id)),
            ("trial_views", delete(TrialView).where(TrialView.trial_id == trial_id)),
            ("notifications", delete(Notification).where(Notification.trial_id == trial_id)),
            (
                "reports",
                delete(Report).where(Report.target_type == TARGET_POST, Report.target_id == trial_id),
            ),
            ("trial", delete(Trial).where(Trial.id == trial_id)),
        ]
        return run_deletion(self.db, DeletionReport(TARGET_POST, trial_id), steps)

    def delete_comment(self, comment_id: int) -> DeletionReport:
        """Delete a comment with every nested reply, their endorsements and reports."""
        try:
            subtree = list(self.db.scalars(comment_subtree(comment_id)))
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load comment") from exc
        if not subtree:
            raise NotFoundError(f"Comment {comment_id} not found")
        return run_deletion(self.db, DeletionReport(TARGET_COMMENT, comment_id), comment_deletion_steps(subtree))


def comment_subtree(comment_id: int) -> Select:
    """Ids of a comment and all of its replies at any depth."""
    family = (
        select(Comment.id)
        .where(Comment.id == comment_id)
        .cte("comment_family", recursive=True)
    )
    family = family.union_all(select(Comment.id).where(Comment.parent_id == family.c.id))
    return select(family.c.id)


def comment_deletion_steps(comment_ids: list[int]) -> list[tuple[str, Delete]]:
    """Ordered statements removing a set of comments and their dependents."""
    return [
        (
            "reports",
            delete(Report).where(Report.target_type == TARGET_COMMENT, Report.target_id.in_(comment_ids)),
        ),
        ("comment_likes", delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids))),
        ("notifications", delete(Notification).where(Notification.comment_id.in_(comment_ids))),
        ("comments", delete(Comment).where(Comment.id.in_(comment_ids))),
    ]
