from .sandbox import SandboxPrivacyLedger, SandboxPrivacySdkGateway, SandboxPrivacySdkSession

__all__ = [
    "SandboxPrivacyLedger",
    "SandboxPrivacySdkGateway",
    "SandboxPrivacySdkSession",
]
