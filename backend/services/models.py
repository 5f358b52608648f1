from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────

# Form field name -> column name, in the order errors are reported
REQUIRED_FIELDS = {
    "orgName": "org_name",
    "spocName": "spoc_name",
    "spocContact": "spoc_contact",
    "contactEmail": "contact_email",
    "psTitle": "ps_title",
    "psDescription": "ps_description",
}
OPTIONAL_FIELDS = {
    "domain": "domain",
    "datasetLink": "dataset_link",
}


class SubmissionFields(BaseModel):
    """
    Text fields of the submission form, exactly as received.
    Validation (required / trimming) happens in the submission service so
    that every missing field can be reported at once.
    """
    model_config = ConfigDict(populate_by_name=True)

    org_name: Optional[str] = Field(None, alias="orgName")
    spoc_name: Optional[str] = Field(None, alias="spocName")
    spoc_contact: Optional[str] = Field(None, alias="spocContact")
    contact_email: Optional[str] = Field(None, alias="contactEmail")
    ps_title: Optional[str] = Field(None, alias="psTitle")
    ps_description: Optional[str] = Field(None, alias="psDescription")
    domain: Optional[str] = None
    dataset_link: Optional[str] = Field(None, alias="datasetLink")


class StatusUpdateRequest(BaseModel):
    """
    Body of /api/update_status. `status` stays a plain string so that an
    unknown value is reported by the service, not by request parsing.
    """
    id: int
    status: str


# ─────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────

class SubmitResult(BaseModel):
    submission_id: int
    documents_processed: int


class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ps_id: int
    filename: str
    original_name: str
    file_size: int
    file_type: Optional[str] = None
    upload_date: datetime


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_name: str
    spoc_name: str
    spoc_contact: str
    contact_email: str
    ps_title: str
    ps_description: str
    domain: Optional[str] = None
    dataset_link: Optional[str] = None
    logo_filename: str
    logo_original_name: str
    logo_file_size: int
    submission_date: datetime
    status: str
    created_at: datetime
    updated_at: datetime


class SubmissionSummary(SubmissionOut):
    """List entry: a submission plus how many documents it carries."""
    document_count: int = 0


class SubmissionDetail(BaseModel):
    submission: SubmissionOut
    documents: List[DocumentOut]
