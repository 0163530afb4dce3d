"""
Error Service - Centralized error bookkeeping and logging for the chat client
"""

import logging
import json
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List
from enum import Enum
from dataclasses import dataclass, asdict


MAX_RECENT_ERRORS = 100


class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    API = "api"
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    EXTERNAL_SERVICE = "external_service"
    SYSTEM = "system"
    MCP = "mcp"
    LLM_SERVICE = "llm_service"


@dataclass
class ErrorContext:
    """Context information for an error"""
    request_id: Optional[str] = None
    endpoint: Optional[str] = None
    method: Optional[str] = None
    provider: Optional[str] = None
    server_url: Optional[str] = None
    tool_name: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


class ErrorService:
    """
    Centralized error handling and logging service
    """

    def __init__(self, max_recent_errors: int = MAX_RECENT_ERRORS):
        self.logger = logging.getLogger(__name__)
        self.max_recent_errors = max_recent_errors
        self.error_stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            'total_errors': 0,
            'errors_by_category': {},
            'errors_by_severity': {},
            'recent_errors': []
        }

    def log_error(self,
                  error: Exception,
                  category: ErrorCategory = ErrorCategory.SYSTEM,
                  severity: ErrorSeverity = ErrorSeverity.MEDIUM,
                  context: Optional[ErrorContext] = None,
                  additional_data: Optional[Dict[str, Any]] = None) -> str:
        """Log an error with structured information"""
        error_id = str(uuid.uuid4())
        timestamp = datetime.now(timezone.utc).isoformat()

        self.error_stats['total_errors'] += 1

        category_key = category.value
        self.error_stats['errors_by_category'][category_key] = \
            self.error_stats['errors_by_category'].get(category_key, 0) + 1

        severity_key = severity.value
        self.error_stats['errors_by_severity'][severity_key] = \
            self.error_stats['errors_by_severity'].get(severity_key, 0) + 1

        log_data = {
            'error_id': error_id,
            'timestamp': timestamp,
            'category': category.value,
            'severity': severity.value,
            'message': str(error),
            'type': type(error).__name__,
            'context': asdict(context) if context else None,
            'additional_data': additional_data
        }

        recent = self.error_stats['recent_errors']
        recent.append(log_data)
        if len(recent) > self.max_recent_errors:
            del recent[:len(recent) - self.max_recent_errors]

        serialized = json.dumps(log_data, indent=2, default=str)
        if severity == ErrorSeverity.CRITICAL:
            self.logger.critical(f"CRITICAL ERROR: {serialized}")
        elif severity == ErrorSeverity.HIGH:
            self.logger.error(f"HIGH SEVERITY ERROR: {serialized}")
        elif severity == ErrorSeverity.MEDIUM:
            self.logger.warning(f"MEDIUM SEVERITY ERROR: {serialized}")
        else:
            self.logger.info(f"LOW SEVERITY ERROR: {serialized}")

        return error_id

    def get_error_stats(self) -> Dict[str, Any]:
        """Get current error statistics"""
        stats = self.error_stats.copy()
        stats['recent_errors'] = len(self.error_stats['recent_errors'])
        return stats

    def get_recent_errors(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Get recent errors, oldest first"""
        if limit <= 0:
            return []
        return self.error_stats['recent_errors'][-limit:]

    def clear_stats(self):
        """Clear error statistics (for testing)"""
        self.error_stats = self._empty_stats()

    def create_user_friendly_message(self,
                                     error: Exception,
                                     category: ErrorCategory) -> str:
        """Create user-friendly error message"""
        if category == ErrorCategory.VALIDATION:
            return f"Invalid input: {str(error)}"
        elif category == ErrorCategory.AUTHENTICATION:
            return "Invalid API key. Please check your settings."
        elif category == ErrorCategory.CONFIGURATION:
            return f"Configuration problem: {str(error)}"
        elif category == ErrorCategory.EXTERNAL_SERVICE:
            return "External service is temporarily unavailable. Please try again later."
        elif category == ErrorCategory.LLM_SERVICE:
            return "The language model service is experiencing issues. Please try again later."
        elif category == ErrorCategory.MCP:
            return f"MCP server error: {str(error)}"
        else:
            return "An unexpected error occurred. Please try again later."


# Global error service instance
error_service = ErrorService()


def log_error(error: Exception,
              category: ErrorCategory = ErrorCategory.SYSTEM,
              severity: ErrorSeverity = ErrorSeverity.MEDIUM,
              context: Optional[ErrorContext] = None,
              additional_data: Optional[Dict[str, Any]] = None) -> str:
    """Convenience function to log an error"""
    return error_service.log_error(error, category, severity, context, additional_data)


def create_error_context(**kwargs) -> ErrorContext:
    """Create error context, unknown keys go into additional_data"""
    valid_fields = {
        'request_id', 'endpoint', 'method', 'provider',
        'server_url', 'tool_name', 'additional_data'
    }

    filtered_kwargs = {}
    additional_data = {}

    for key, value in kwargs.items():
        if key in valid_fields:
            filtered_kwargs[key] = value
        else:
            additional_data[key] = value

    if additional_data:
        filtered_kwargs['additional_data'] = {**(filtered_kwargs.get('additional_data') or {}), **additional_data}

    return ErrorContext(**filtered_kwargs)
