"""
Service-level exceptions.

Only conditions the caller must handle differently from an ordinary
"proof rejected" outcome are raised. Signature and business failures are
returned as ``success: false`` results instead.
"""


class QuestServiceError(Exception):
    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientError(QuestServiceError):
    status_code = 400
    default_message = "Bad request"


class InvalidQuestError(ClientError):
    default_message = "Invalid quest number"


class ReferenceRequiredError(ClientError):
    default_message = "Tweet URL is required for this quest"


class VerifierUnavailableError(QuestServiceError):
    status_code = 503
    default_message = "Verification service unavailable"
