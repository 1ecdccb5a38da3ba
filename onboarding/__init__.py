"""
Identity Onboarding Service

This package drives a remote identity-verification flow:
- Session creation and strict resumption
- Webhook handling with score interpretation
- Identity approval for passing sessions
- Contract upload and signature attachment (NOM151)
"""

__version__ = "1.0.0"
