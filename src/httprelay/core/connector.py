"""
Executor interface for running requests against an upstream service.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from .envelope import ResponseEnvelope
from .models import Representation


class Executor(ABC):
    """
    Abstract base class for request executors.
    
    An executor runs one request per execute() call and returns the response
    as a fresh envelope; it holds no per-call state, so one instance can serve
    concurrent callers.
    """

    @abstractmethod
    def execute(
        self,
        method: str,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
        base_uri: Optional[str] = None,
    ) -> ResponseEnvelope:
        """
        Execute a request.
        
        Args:
            method: HTTP method
            url: URL relative to the base URI
            data: Request payload
            headers: Request headers
            base_uri: Base URI overriding the executor's own for this call
            
        Returns:
            ResponseEnvelope of an accepted response
            
        Raises:
            HttpExecutionError: If the outcome is fatal
        """
        pass

    @abstractmethod
    def get_response(
        self,
        envelope: Optional[ResponseEnvelope],
        representation: Union[Representation, str] = Representation.JSON,
    ) -> Any:
        """
        Read a representation from an envelope.
        
        Returns:
            The representation, or None if there is no envelope, the body is
            empty, or decoding failed
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the executor name/identifier."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
