from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Union
from uuid import UUID

AnswerValue = Union[str, int, float, List[str], None]


class PublicSubmissionCreate(BaseModel):
    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    submitted_by_email: Optional[str] = Field(default=None, max_length=255)


class PublicSubmissionCreated(BaseModel):
    submission_id: UUID
    success_message: str
    allow_multiple_submissions: bool


class WebhookFormEvent(BaseModel):
    formId: Optional[str] = None
    action: Optional[str] = None


class WebhookSubmissionEvent(BaseModel):
    submissionId: Optional[str] = None


class InvitationPublicRead(BaseModel):
    status: str
    status_label: str
    redeemable: bool
    email: Optional[str] = None
    description: Optional[str] = None
    expires_at: Optional[str] = None
