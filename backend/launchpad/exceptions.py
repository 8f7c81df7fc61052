"""
Agent pipeline error taxonomy
Every failure that reaches a caller is one of these
"""

from typing import Any, Dict, Optional


class AgentError(Exception):
    """Base exception for agent pipeline errors"""
    code = "AGENT_ERROR"

    def __init__(
        self,
        message: str,
        agent_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.agent_type = agent_type
        self.details = details or {}


class ConfigurationError(AgentError):
    """Missing provider credential or unusable configuration"""
    code = "CONFIGURATION_ERROR"


class InvalidResponseError(AgentError):
    """Provider answered without usable content"""
    code = "INVALID_RESPONSE"


class ProviderError(AgentError):
    """Transport or protocol failure talking to the provider"""
    code = "PROVIDER_ERROR"


class ParseError(AgentError):
    """Model output did not contain an extractable JSON object"""
    code = "PARSE_ERROR"

    def __init__(self, message: str, raw_text: str, agent_type: Optional[str] = None):
        super().__init__(message, agent_type, {"raw_text": raw_text[:2000]})
        self.raw_text = raw_text


class ValidationError(AgentError):
    """Payload does not satisfy its contract"""
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        agent_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, agent_type, details)
        self.field = field


class InsufficientCreditsError(AgentError):
    """Caller cannot pay for the run"""
    code = "INSUFFICIENT_CREDITS"


class AgentNotFoundError(AgentError):
    """Agent type is not registered"""
    code = "AGENT_NOT_FOUND"


class ProjectNotFoundError(AgentError):
    """Project does not exist or is not owned by the caller"""
    code = "PROJECT_NOT_FOUND"


class AgentBusyError(AgentError):
    """Another agent is already running on the project"""
    code = "AGENT_BUSY"


# HTTP status for each error code; anything unlisted is a 500
HTTP_STATUS_BY_CODE = {
    ValidationError.code: 400,
    InsufficientCreditsError.code: 402,
    ProjectNotFoundError.code: 404,
    AgentNotFoundError.code: 404,
    AgentBusyError.code: 409,
}


def http_status_for(error: AgentError) -> int:
    return HTTP_STATUS_BY_CODE.get(error.code, 500)
