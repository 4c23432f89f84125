"""Response schemas shared by the assignment and doubt routers.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mentorship.models.assignment import Assignment
from mentorship.models.doubt import Doubt
from mentorship.models.principal import Principal


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TurnOut(CamelModel):
    sender: str
    message: str
    type: str
    timestamp: datetime


class DoubtOut(CamelModel):
    id: str
    assignment_id: str
    student_id: str
    conversation: list[TurnOut]
    current_status: str
    resolved: bool
    resolved_at: datetime | None
    resolved_by: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_doubt(cls, doubt: Doubt) -> DoubtOut:
        return cls(
            id=doubt.id,
            assignment_id=doubt.assignment_id,
            student_id=doubt.student_id,
            conversation=[
                TurnOut(
                    sender=t.sender,
                    message=t.message,
                    type=t.type.value,
                    timestamp=t.timestamp,
                )
                for t in doubt.sorted_conversation()
            ],
            current_status=doubt.current_status.value,
            resolved=doubt.resolved,
            resolved_at=doubt.resolved_at,
            resolved_by=doubt.resolved_by,
            created_at=doubt.created_at,
            updated_at=doubt.updated_at,
        )


class ResponseOut(CamelModel):
    student_id: str
    response_status: str
    submission_url: str
    screenshots: list[str]
    learning_notes: str


class AssigneeOut(CamelModel):
    name: str
    email: str
    assigned_by: str
    user_id: str | None


class AssignmentOut(CamelModel):
    id: str
    title: str
    created_by: str
    explanation: str
    difficulty: str
    tags: list[str]
    major_topic: str
    repo_category: str
    question_type: str
    coding_platform_link: str
    solution: str | None
    solution_visible: bool
    distribution_tag: str
    assigned_to: list[AssigneeOut]
    responses: dict[str, ResponseOut]
    created_at: datetime

    @classmethod
    def from_assignment(
        cls, a: Assignment, viewer: Principal | None = None
    ) -> AssignmentOut:
        """Learners see only their own response, and the solution once visible."""
        learner = viewer is not None and viewer.is_learner
        responses = a.responses
        if viewer is not None and learner:
            own = a.response_for(viewer.user_id)
            responses = {own.student_id: own} if own else {}
        return cls(
            id=a.id,
            title=a.title,
            created_by=a.created_by,
            explanation=a.explanation,
            difficulty=a.difficulty,
            tags=list(a.tags),
            major_topic=a.major_topic,
            repo_category=a.repo_category,
            question_type=a.question_type,
            coding_platform_link=a.coding_platform_link,
            solution=None if learner and not a.solution_visible else a.solution,
            solution_visible=a.solution_visible,
            distribution_tag=a.distribution_tag.value,
            assigned_to=[
                AssigneeOut(
                    name=x.name,
                    email=x.email,
                    assigned_by=x.assigned_by,
                    user_id=x.user_id,
                )
                for x in a.assigned_to
            ],
            responses={
                student_id: ResponseOut(
                    student_id=r.student_id,
                    response_status=r.status.value,
                    submission_url=r.submission_url,
                    screenshots=list(r.screenshots),
                    learning_notes=r.learning_notes,
                )
                for student_id, r in responses.items()
            },
            created_at=a.created_at,
        )
