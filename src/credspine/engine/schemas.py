"""
Credentialing entity declarations.

The fixed list the default :class:`~credspine.engine.registry.TableRegistry`
is built from. Header text here must match the header row in the store
exactly; a renamed or missing header silently blanks that field.
"""

from __future__ import annotations

from credspine.engine.registry import ChildSchema, EntitySchema, TableRegistry

AUDIT_TABLE = "AuditLog"
PROVIDERS_TABLE = "Providers"

# ── Provider ─────────────────────────────────────────────────────────────

LICENSES = ChildSchema(
    table="Licenses",
    headers=(
        "ID", "Provider ID", "License Type", "License Number", "State",
        "Issue Date", "Expiration Date", "Status", "Is Primary",
        "Verification JSON", "Created At",
    ),
    required=("licenseNumber", "state"),
    parent_link="Provider ID",
    field_name="licenses",
)

ENROLLMENTS = ChildSchema(
    table="Enrollments",
    headers=(
        "ID", "Provider ID", "Payer Name", "Plan Type", "Enrollment Status",
        "Effective Date", "Termination Date", "Details JSON", "Created At",
    ),
    required=("payerName",),
    parent_link="Provider ID",
    field_name="enrollments",
)

MONITORS = ChildSchema(
    table="Monitors",
    headers=(
        "ID", "Provider ID", "Monitor Type", "Source", "Last Checked",
        "Next Check", "Is Enabled", "Findings JSON", "Created At",
    ),
    required=("monitorType",),
    parent_link="Provider ID",
    field_name="monitors",
)

PROVIDER_DOCUMENTS = ChildSchema(
    table="ProviderDocuments",
    headers=(
        "ID", "Provider ID", "Document Type", "File Name", "File URL",
        "Uploaded At", "Metadata JSON",
    ),
    required=("documentType", "fileUrl"),
    parent_link="Provider ID",
    field_name="documents",
)

PROVIDER = EntitySchema(
    entity_type="Provider",
    table=PROVIDERS_TABLE,
    headers=(
        "ID", "First Name", "Last Name", "NPI", "Email", "Phone", "Specialty",
        "Credentialing Status", "Is Active", "Address JSON", "Created At",
        "Updated At",
    ),
    required=("firstName", "lastName"),
    children=(LICENSES, ENROLLMENTS, MONITORS, PROVIDER_DOCUMENTS),
)

# ── Facility ─────────────────────────────────────────────────────────────

FACILITY_LICENSES = ChildSchema(
    table="FacilityLicenses",
    headers=(
        "ID", "Facility ID", "License Type", "License Number", "State",
        "Expiration Date", "Status", "Created At",
    ),
    required=("licenseNumber",),
    parent_link="Facility ID",
    field_name="licenses",
)

AFFILIATIONS = ChildSchema(
    table="Affiliations",
    headers=(
        "ID", "Facility ID", "Provider ID", "Role", "Start Date", "End Date",
        "Is Primary", "Created At",
    ),
    required=("providerId",),
    parent_link="Facility ID",
    field_name="affiliations",
)

FACILITY = EntitySchema(
    entity_type="Facility",
    table="Facilities",
    headers=(
        "ID", "Name", "Facility Type", "NPI", "Tax ID", "Address JSON",
        "Is Active", "Created At", "Updated At",
    ),
    required=("name",),
    children=(FACILITY_LICENSES, AFFILIATIONS),
)

# ── Credentialing request ────────────────────────────────────────────────

TASK_ATTACHMENTS = ChildSchema(
    table="TaskAttachments",
    headers=("ID", "Task ID", "File Name", "File URL", "Uploaded At"),
    required=("fileUrl",),
    parent_link="Task ID",
    field_name="attachments",
)

REQUEST_NOTES = ChildSchema(
    table="RequestNotes",
    headers=("ID", "Request ID", "Author", "Note", "Created At"),
    required=("note",),
    parent_link="Request ID",
    field_name="notes",
)

REQUEST_TASKS = ChildSchema(
    table="RequestTasks",
    headers=(
        "ID", "Request ID", "Task Name", "Is Complete", "Due Date",
        "Completed At", "Created At",
    ),
    required=("taskName",),
    parent_link="Request ID",
    field_name="tasks",
    children=(TASK_ATTACHMENTS,),
)

CREDENTIALING_REQUEST = EntitySchema(
    entity_type="CredentialingRequest",
    table="CredentialingRequests",
    headers=(
        "ID", "Provider ID", "Facility ID", "Request Type", "Status",
        "Priority", "Submitted At", "Completed At", "Checklist JSON",
        "Created At", "Updated At",
    ),
    required=("providerId", "requestType"),
    children=(REQUEST_NOTES, REQUEST_TASKS),
)

# ── Webhook ──────────────────────────────────────────────────────────────

WEBHOOK_DELIVERIES = ChildSchema(
    table="WebhookDeliveries",
    headers=(
        "ID", "Webhook ID", "Event Type", "Status Code", "Is Success",
        "Delivered At", "Payload JSON",
    ),
    required=("eventType",),
    parent_link="Webhook ID",
    field_name="deliveries",
)

WEBHOOK = EntitySchema(
    entity_type="Webhook",
    table="Webhooks",
    headers=(
        "ID", "Name", "Target URL", "Event Types JSON", "Secret", "Is Active",
        "Created At", "Updated At",
    ),
    required=("name", "targetUrl"),
    children=(WEBHOOK_DELIVERIES,),
)

# ── Audit ────────────────────────────────────────────────────────────────

AUDIT_EVENT = EntitySchema(
    entity_type="AuditEvent",
    table=AUDIT_TABLE,
    headers=("ID", "Timestamp", "Kind", "Message", "Correlation ID", "Context JSON"),
    append_only=True,
)

CREDENTIALING_ENTITIES = (PROVIDER, FACILITY, CREDENTIALING_REQUEST, WEBHOOK, AUDIT_EVENT)


def default_registry() -> TableRegistry:
    """Registry of every credentialing entity."""
    return TableRegistry(CREDENTIALING_ENTITIES)


__all__ = [
    "AUDIT_TABLE",
    "PROVIDERS_TABLE",
    "PROVIDER",
    "FACILITY",
    "CREDENTIALING_REQUEST",
    "WEBHOOK",
    "AUDIT_EVENT",
    "CREDENTIALING_ENTITIES",
    "default_registry",
]
