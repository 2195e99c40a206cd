# apps/responses/schemas.py
# request examples for /api/docs

from drf_spectacular.utils import OpenApiExample

CreateResponseExample = OpenApiExample(
    "Create draft",
    value={
        "inquiryId": "3f1c2a9e-5d2b-4c1e-9a57-6b0f3c8d2e11",
        "responseText": "Hello, thanks for reaching out. We have reset your billing cycle.",
    },
    request_only=True,
)

UpdateResponseExample = OpenApiExample(
    "Edit draft",
    value={"responseText": "Hello, thanks for your patience. Your refund was issued today."},
    request_only=True,
)

ApproveResponseExample = OpenApiExample(
    "Approve",
    value={"approvalNotes": "looks good"},
    request_only=True,
)

RejectResponseExample = OpenApiExample(
    "Reject",
    value={"rejectionReason": "Please mention the refund reference number."},
    request_only=True,
)
