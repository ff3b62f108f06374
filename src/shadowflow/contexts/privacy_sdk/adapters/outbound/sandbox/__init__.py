from .sandbox_privacy_sdk import (
    SandboxPrivacyLedger,
    SandboxPrivacySdkGateway,
    SandboxPrivacySdkSession,
)

__all__ = [
    "SandboxPrivacyLedger",
    "SandboxPrivacySdkGateway",
    "SandboxPrivacySdkSession",
]
