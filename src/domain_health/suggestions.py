"""
Troubleshooting suggestion service.

Asks a generative text API for a short troubleshooting checklist for a
domain that is down or flagged. The service is opaque to the rest of the
system: it takes a hostname and a status and returns rich text (simple HTML)
or raises OracleUnavailableError.
"""

from typing import Optional

import httpx

from .audit_logger import AuditLogger
from .config import SuggestionConfig
from .enums import DomainStatus, LogLevel
from .exceptions import OracleUnavailableError


NO_ISSUES_MESSAGE = "No issues detected. Suggestions are not needed."
NOT_CONFIGURED_MESSAGE = "AI client is not initialized. Please check your API key."
REQUEST_FAILED_MESSAGE = (
    "Could not retrieve suggestions from AI. "
    "The API may be down or the request was blocked."
)

PROMPT_TEMPLATE = """
The domain "{url}" has been flagged with a status of "{status}".
Act as a senior DevOps engineer. Provide a concise, actionable troubleshooting checklist for a website administrator to diagnose and fix the potential issues.
Use simple HTML for formatting (e.g., <ul>, <li>, <b>, <h4>). Include separate sections for "Initial Checks", "Deeper Investigation", and "Resolution Steps".
The advice should be general and applicable to common web hosting environments.
Do not include any introductory or concluding pleasantries. Go straight to the checklist.
"""

SIMULATED_CHECKLIST = (
    "<h4>Initial Checks</h4><ul><li>Resolve <b>{url}</b> via DNS.</li>"
    "<li>Confirm the server answers on ports 80 and 443.</li></ul>"
    "<h4>Deeper Investigation</h4><ul><li>Review web server and proxy error logs.</li>"
    "<li>Check TLS certificate validity.</li></ul>"
    "<h4>Resolution Steps</h4><ul><li>Restart failed services.</li>"
    "<li>Roll back recent configuration changes.</li></ul>"
)


class SuggestionService:
    """Client for the generative troubleshooting API."""

    def __init__(
        self,
        config: Optional[SuggestionConfig] = None,
        simulation_mode: bool = False,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the suggestion service.

        Args:
            config: API key, model, endpoint and timeout
            simulation_mode: If True, no real network requests are made
            logger: Optional audit logger
            transport: Optional httpx transport (used by tests)
        """
        self._config = config or SuggestionConfig()
        self._simulation_mode = simulation_mode
        self._logger = logger
        self._transport = transport

        if not self.is_configured:
            self._log(LogLevel.ERROR, "API key not set; suggestions are unavailable", {})

    @property
    def is_configured(self) -> bool:
        """True when suggestions can be requested."""
        return self._simulation_mode or bool(self._config.api_key)

    async def suggest(self, url: str, status: DomainStatus) -> str:
        """
        Get troubleshooting guidance for a domain.

        Args:
            url: Hostname of the domain
            status: Current status of the domain

        Returns:
            HTML checklist, or NO_ISSUES_MESSAGE for healthy/pending domains

        Raises:
            OracleUnavailableError: If no credential is configured or the
                service cannot be reached
        """
        if not self.is_configured:
            raise OracleUnavailableError(
                code="not_configured",
                message=NOT_CONFIGURED_MESSAGE,
            )

        if status in (DomainStatus.HEALTHY, DomainStatus.PENDING):
            return NO_ISSUES_MESSAGE

        if self._simulation_mode:
            return SIMULATED_CHECKLIST.format(url=url)

        prompt = PROMPT_TEMPLATE.format(url=url, status=status.value)
        request_url = (
            f"{self._config.endpoint.rstrip('/')}/models/{self._config.model}:generateContent"
        )
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._config.api_key,
        }

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_seconds),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(request_url, json=body, headers=headers)
                response.raise_for_status()
                return self._extract_text(response.json())
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                self._log_error("Suggestion request failed", e, {"url": url})
                raise OracleUnavailableError(
                    code="request_failed",
                    message=REQUEST_FAILED_MESSAGE,
                    details={"url": url, "error": str(e)},
                ) from e

    def _extract_text(self, payload: dict) -> str:
        """Pull the generated text out of a generateContent response."""
        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected response shape: {e}") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text:
            raise ValueError("Response contained no text")
        return text

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "SuggestionService", message, data)

    def _log_error(self, message: str, error: Exception, data: dict) -> None:
        if self._logger:
            self._logger.log_error("SuggestionService", message, error, data)
