"""
Computation Dispatcher - sends a typed payload to the computation endpoint.

The form engine never computes results itself. It depends on the
``ComputationDispatcher`` abstraction so the endpoint can be a remote HTTP
service, an in-process function or a test double without touching the
form session.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union

import requests
from pydantic import ValidationError

from calcform.config.settings import EngineSettings
from calcform.schemas.computation import ComputationRequest, ComputationResponse
from calcform.schemas.errors import (
    GENERIC_COMPUTATION_ERROR,
    NO_RESULTS_ERROR,
    ComputationError,
)

logger = logging.getLogger(__name__)


class ComputationDispatcher(ABC):
    """
    Abstract interface for computation endpoints.

    Stateless: accepts (calculator id + typed inputs) and returns the raw
    result map.
    """

    @abstractmethod
    def dispatch(
        self,
        calculator_id: str,
        inputs: Mapping[str, Union[float, str]],
        locale: str,
    ) -> Dict[str, Any]:
        """
        Run one calculation.

        Args:
            calculator_id: Calculator id (dispatch key on the server)
            inputs: Output of ``coerce_payload``
            locale: Locale used for server-side formatting and messages

        Returns:
            Non-empty result map keyed by output name

        Raises:
            ComputationError: On any failure. ``message`` is shown to the
                user as-is; ``field_errors`` holds per-field messages when
                the server rejected specific inputs.
        """
        pass


class HttpComputationDispatcher(ComputationDispatcher):
    """
    Dispatcher for the ``/api/calculators/{id}/calculate`` HTTP endpoint.

    Nothing is retried. Transport failures surface as the generic
    "Calculation failed" error and are logged with their cause.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "HttpComputationDispatcher":
        return cls(settings.computation_base_url, timeout=settings.request_timeout_seconds)

    def endpoint_url(self, calculator_id: str) -> str:
        return f"{self.base_url}/api/calculators/{calculator_id}/calculate"

    def dispatch(
        self,
        calculator_id: str,
        inputs: Mapping[str, Union[float, str]],
        locale: str,
    ) -> Dict[str, Any]:
        url = self.endpoint_url(calculator_id)
        body = ComputationRequest(inputs=dict(inputs), locale=locale)

        logger.debug(f"POST {url} locale={locale} inputs={sorted(body.inputs)}")
        try:
            response = self._session.post(
                url,
                params={"locale": locale},
                json=body.model_dump(),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error(f"Computation request for {calculator_id} timed out after {self.timeout}s")
            raise ComputationError(GENERIC_COMPUTATION_ERROR)
        except requests.RequestException as e:
            logger.error(f"Computation request for {calculator_id} failed: {e}")
            raise ComputationError(GENERIC_COMPUTATION_ERROR)

        parsed = self._parse_body(calculator_id, response)

        if not response.ok:
            message = parsed.error or parsed.message or GENERIC_COMPUTATION_ERROR
            logger.warning(
                f"Computation for {calculator_id} returned HTTP {response.status_code}: {message}"
            )
            raise ComputationError(
                message,
                status_code=response.status_code,
                field_errors=parsed.errors,
            )

        if not parsed.results:
            logger.warning(f"Computation for {calculator_id} returned no results")
            raise ComputationError(NO_RESULTS_ERROR, status_code=response.status_code)

        logger.debug(f"Computation for {calculator_id} returned {len(parsed.results)} outputs")
        return parsed.results

    @staticmethod
    def _parse_body(calculator_id: str, response: requests.Response) -> ComputationResponse:
        try:
            data = response.json()
        except ValueError:
            logger.error(
                f"Computation for {calculator_id} returned a non-JSON body "
                f"(HTTP {response.status_code}): {response.text[:200]}"
            )
            raise ComputationError(GENERIC_COMPUTATION_ERROR, status_code=response.status_code)

        if not isinstance(data, dict):
            logger.error(f"Computation for {calculator_id} returned a non-object body")
            raise ComputationError(GENERIC_COMPUTATION_ERROR, status_code=response.status_code)

        try:
            return ComputationResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Computation for {calculator_id} returned a malformed body: {e}")
            raise ComputationError(GENERIC_COMPUTATION_ERROR, status_code=response.status_code)
