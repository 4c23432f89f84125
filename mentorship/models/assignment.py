from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4


class ResponseStatus(str, Enum):
    NOT_ATTEMPTED = "not attempted"
    SOLVED = "solved"
    PARTIALLY_SOLVED = "partially solved"
    NOT_UNDERSTANDING = "not understanding"
    HAVING_DOUBT = "having doubt"


class DistributionTag(str, Enum):
    CENTRAL = "central"
    PRACTICE = "practice"
    HW = "hw"
    CW = "cw"
    PERSONAL = "personal"


@dataclass(frozen=True, slots=True)
class Assignee:
    name: str
    email: str
    assigned_by: str
    user_id: str | None = None


@dataclass(frozen=True, slots=True)
class Response:
    """A student's current snapshot on one assignment.

    Replaced wholesale on every submission; never merged.
    """

    student_id: str
    status: ResponseStatus = ResponseStatus.NOT_ATTEMPTED
    submission_url: str = ""
    screenshots: tuple[str, ...] = ()
    learning_notes: str = ""


@dataclass(frozen=True, slots=True)
class Assignment:
    id: str
    title: str
    created_by: str
    explanation: str = ""
    difficulty: str = "easy"  # easy|medium|hard
    tags: tuple[str, ...] = ()
    major_topic: str = ""
    repo_category: str = "question"  # question|project
    question_type: str = "coding"  # coding|conceptual
    coding_platform_link: str = ""
    solution: str = ""
    solution_visible: bool = False
    distribution_tag: DistributionTag = DistributionTag.CENTRAL
    assigned_to: tuple[Assignee, ...] = ()
    # One entry per student; keyed by student id.
    responses: dict[str, Response] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def new(
        *,
        title: str,
        created_by: str,
        distribution_tag: DistributionTag = DistributionTag.CENTRAL,
        assigned_to: tuple[Assignee, ...] = (),
        **metadata,
    ) -> Assignment:
        return Assignment(
            id=uuid4().hex,
            title=title,
            created_by=created_by,
            distribution_tag=distribution_tag,
            assigned_to=assigned_to if distribution_tag is DistributionTag.PERSONAL else (),
            **metadata,
        )

    @property
    def is_personal(self) -> bool:
        return self.distribution_tag is DistributionTag.PERSONAL

    def is_assigned(self, user_id: str, email: str | None) -> bool:
        normalized = email.strip().lower() if email else None
        for assignee in self.assigned_to:
            if assignee.user_id is not None and assignee.user_id == user_id:
                return True
            if normalized and assignee.email.strip().lower() == normalized:
                return True
        return False

    def response_for(self, student_id: str) -> Response | None:
        return self.responses.get(student_id)

    def with_response(self, response: Response) -> Assignment:
        responses = dict(self.responses)
        responses[response.student_id] = response
        return replace(self, responses=responses)
