"""Health checks for workspace and credential readiness."""

from .checker import CheckResult, CheckStatus, HealthChecker

__all__ = ["CheckResult", "CheckStatus", "HealthChecker"]
