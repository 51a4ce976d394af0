"""API models for the PayFast ITN endpoint."""

from pydantic import ConfigDict

from giving.models.errors import ErrorResponse


class WebhookErrorResponse(ErrorResponse):
    """Rejection body for an ITN that failed validation.

    Same shape as every other error; documented separately so the OpenAPI
    schema shows what PayFast receives on 400 and 403.
    """

    model_config = ConfigDict(
        strict=True,
        json_schema_extra={
            "examples": [
                {
                    "success": False,
                    "error_code": "ERR_WEBHOOK_002",
                    "message": "Notification signature is invalid",
                    "recovery": "Verify the passphrase matches the merchant dashboard",
                    "details": None,
                }
            ]
        },
    )
