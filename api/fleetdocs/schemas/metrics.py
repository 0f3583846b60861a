from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Metrics(BaseModel):
    """Summary statistics over a document collection.

    Serialised with camelCase keys (``totalDocuments``, ``complianceRate``)
    since that is the shape the dashboards read.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_documents: int = 0
    pending_documents: int = 0
    approved_documents: int = 0
    rejected_documents: int = 0
    expired_documents: int = 0
    expiring_soon: int = 0
    total_partners: int = 0
    total_drivers: int = 0
    average_processing_time: int = 0  # whole days
    compliance_rate: int = 0
    verification_rate: int = 0
    critical_documents: int = 0
    high_risk_documents: int = 0
    medium_risk_documents: int = 0
    low_risk_documents: int = 0
    documents_by_status: dict[str, int] = Field(default_factory=dict)
    documents_by_category: dict[str, int] = Field(default_factory=dict)
    documents_by_type: dict[str, int] = Field(default_factory=dict)
    total_file_size: int = 0
    average_file_size: int = 0
    last_upload_date: str = ""
    last_approval_date: str = ""
